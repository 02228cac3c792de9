import datetime
from unittest.mock import patch

import pytest

from lunaplan.errors import BackendError
from lunaplan.ephemeris import astropy_backend


def test_missing_astropy_raises_backend_error():
    with patch.object(astropy_backend, "ASTROPY_AVAILABLE", False):
        with pytest.raises(BackendError, match="astropy is required"):
            astropy_backend.AstropyPositionProvider()


@pytest.mark.integration
def test_astropy_matches_meeus(atlanta):
    pytest.importorskip("astropy")
    from lunaplan.ephemeris.meeus import MeeusPositionProvider

    t = datetime.datetime(2026, 2, 24, 3, tzinfo=datetime.timezone.utc)
    precise = astropy_backend.AstropyPositionProvider()
    rough = MeeusPositionProvider()

    assert precise.is_available()["ok"] is True
    assert precise.sun_altaz(t, atlanta).alt_deg == pytest.approx(rough.sun_altaz(t, atlanta).alt_deg, abs=0.5)
    assert precise.moon_altaz(t, atlanta).alt_deg == pytest.approx(rough.moon_altaz(t, atlanta).alt_deg, abs=2.0)
    target = precise.target_altaz(t, atlanta, 83.82, -5.39)
    assert target.alt_deg == pytest.approx(rough.target_altaz(t, atlanta, 83.82, -5.39).alt_deg, abs=0.5)
    assert precise.moon_illumination(t) == pytest.approx(rough.moon_illumination(t), abs=3.0)
