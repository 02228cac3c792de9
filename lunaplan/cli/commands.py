import datetime
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from lunaplan.config import load_config
from lunaplan.ephemeris import get_position_provider
from lunaplan.errors import BackendError
from lunaplan.planner import ObserverLocation, Planner, SuggestionEngine, Target
from lunaplan.planner.formatters import format_json as format_plan_json
from lunaplan.planner.formatters import format_suggestions_text, format_text
from lunaplan.planner.night import resolve_timezone
from lunaplan.planner.planner import DEFAULT_DAYS


def _json_envelope(command: str, ok: bool, data=None, error=None) -> dict:
    return {
        "ok": ok,
        "command": command,
        "timestamp_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "data": data,
        "error": error,
    }


def _init_logging(level: str | None) -> None:
    if not level:
        return
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "error": logging.ERROR,
    }
    logging.basicConfig(level=level_map.get(level, logging.INFO))


def _config_path_from_args(args) -> Path | None:
    if args is None:
        return None
    path = getattr(args, "config", None)
    return Path(path) if path else None


def _print_error(command: str, args, code: str, exc: Exception) -> None:
    if getattr(args, "json", False):
        payload = _json_envelope(
            command=command,
            ok=False,
            data=None,
            error={"code": code, "message": str(exc), "details": None},
        )
        print(json.dumps(payload, indent=2))
    else:
        print(str(exc), file=sys.stderr)


def parse_target_spec(value: str) -> Target:
    """Parse ``NAME,RA,DEC`` with RA and Dec in decimal degrees."""
    parts = value.rsplit(",", 2)
    if len(parts) != 3 or not parts[0].strip():
        raise ValueError(f"Target must be NAME,RA,DEC (got {value!r})")
    name, ra_text, dec_text = (p.strip() for p in parts)
    try:
        ra = float(ra_text)
        dec = float(dec_text)
    except ValueError:
        raise ValueError(f"Target RA/Dec must be decimal degrees (got {value!r})") from None
    if not 0.0 <= ra < 360.0:
        raise ValueError(f"Target RA out of range [0, 360): {ra}")
    if not -90.0 <= dec <= 90.0:
        raise ValueError(f"Target Dec out of range [-90, 90]: {dec}")
    return Target(name=name, ra_deg=ra, dec_deg=dec)


def _parse_date_arg(value: str | None) -> datetime.date | None:
    if not value:
        return None
    return datetime.date.fromisoformat(value)


def _parse_location_args(args, config) -> ObserverLocation | None:
    lat = getattr(args, "latitude_deg", None)
    lon = getattr(args, "longitude_deg", None)
    overrides_site = lat is not None or lon is not None
    elev = getattr(args, "elevation_m", None)
    tz = getattr(args, "timezone", None)
    if lat is None and lon is None and elev is None and tz is None:
        return None
    if lat is None:
        lat = config.site_latitude_deg
    if lon is None:
        lon = config.site_longitude_deg
    if lat is None or lon is None:
        raise ValueError("Both latitude and longitude are required when specifying location")
    return ObserverLocation(
        latitude_deg=lat,
        longitude_deg=lon,
        elevation_m=elev if elev is not None else config.site_elevation_m,
        timezone=tz or config.site_timezone,
        name=None if overrides_site else config.site_name,
    )


def _build_request(args, config, planner: Planner):
    request = planner.default_request(config, targets=[parse_target_spec(t) for t in args.targets or []])
    start = _parse_date_arg(getattr(args, "start", None))
    if start is not None:
        request.start_date = start
    days = getattr(args, "days", None)
    if days is None:
        days = DEFAULT_DAYS
    if days < 1:
        raise ValueError("--days must be at least 1")
    request.end_date = request.start_date + datetime.timedelta(days=days - 1)
    location = _parse_location_args(args, config)
    if location is not None:
        request.location = location
    return request


def run_plan(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        planner = Planner(config)
        request = _build_request(args, config, planner)
        if not request.targets:
            raise ValueError("At least one --target NAME,RA,DEC is required")
        result = planner.calculate(request)
    except (ValueError, FileNotFoundError) as e:
        _print_error("plan", args, "invalid_request", e)
        return 2
    except BackendError as e:
        _print_error("plan", args, "backend_error", e)
        return 1

    if getattr(args, "json", False):
        print(format_plan_json(result, envelope=_json_envelope(command="plan", ok=True)))
    else:
        print(format_text(result))
    return 0


def run_suggest(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        planner = Planner(config)
        request = _build_request(args, config, planner)
        candidates = [parse_target_spec(c) for c in args.candidates or []]
        if not candidates:
            raise ValueError("At least one --candidate NAME,RA,DEC is required")
        suggestions = SuggestionEngine(planner.provider).suggest(request, candidates)
    except (ValueError, FileNotFoundError) as e:
        _print_error("suggest", args, "invalid_request", e)
        return 2
    except BackendError as e:
        _print_error("suggest", args, "backend_error", e)
        return 1

    if getattr(args, "json", False):
        payload = _json_envelope(
            command="suggest",
            ok=True,
            data={"suggestions": [asdict(s) for s in suggestions]},
            error=None,
        )
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(format_suggestions_text(suggestions))
    return 0


def run_doctor(args=None) -> int:
    _init_logging(getattr(args, "log_level", None))

    def check_config():
        try:
            return load_config(_config_path_from_args(args)), {
                "ok": True,
                "detail": "loaded (defaults applied if missing)",
            }
        except (OSError, ValueError) as e:
            return None, {"ok": False, "detail": f"invalid config: {e}"}

    config, config_check = check_config()

    def check_ephemeris():
        if config is None:
            return {"ok": False, "detail": "config not loaded"}
        try:
            return get_position_provider(config).is_available()
        except (BackendError, ValueError) as e:
            return {"ok": False, "detail": str(e)}

    def check_site():
        if config is None:
            return {"ok": False, "detail": "config not loaded"}
        lat, lon = config.site_latitude_deg, config.site_longitude_deg
        if lat is None or lon is None:
            return {"ok": False, "detail": "site latitude/longitude not set"}
        return {"ok": True, "detail": f"lat {lat}, lon {lon}"}

    def check_timezone():
        if config is None:
            return {"ok": False, "detail": "config not loaded"}
        try:
            resolve_timezone(config.site_timezone)
        except ValueError as e:
            return {"ok": False, "detail": str(e)}
        return {"ok": True, "detail": config.site_timezone}

    backend = config.ephemeris_backend if config is not None else "unknown"
    checks = {
        "config": config_check,
        f"ephemeris ({backend})": check_ephemeris(),
        "site": check_site(),
        "timezone": check_timezone(),
    }

    ok = all(c["ok"] for c in checks.values())

    if args is not None and getattr(args, "json", False):
        payload = _json_envelope(
            command="doctor",
            ok=ok,
            data={"checks": checks},
            error=None
            if ok
            else {
                "code": "doctor_failed",
                "message": "one or more checks failed",
                "details": None,
            },
        )
        print(json.dumps(payload, indent=2))
    else:
        print("Lunaplan Doctor Report")
        print("======================")

        for name, result in checks.items():
            status = "OK" if result["ok"] else "MISSING"
            print(f"{name:20} : {status} ({result['detail']})")

        if ok:
            print("\nSystem ready.")
        else:
            print("\nSome components are missing or not configured.")

    return 0 if ok else 1
