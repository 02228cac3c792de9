import pytest

from lunaplan.ephemeris.types import ObserverLocation


def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run tests marked as integration",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--integration"):
        return

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(
                pytest.mark.skip(
                    reason="need --integration option to run integration tests"
                )
            )


@pytest.fixture
def atlanta():
    return ObserverLocation(
        latitude_deg=33.75,
        longitude_deg=-84.39,
        elevation_m=320,
        timezone="America/New_York",
        name="Atlanta",
    )


@pytest.fixture
def utc_site():
    # Timezone UTC keeps local noon/midnight arithmetic trivial for fake providers.
    return ObserverLocation(latitude_deg=40.0, longitude_deg=0.0, timezone="UTC")
