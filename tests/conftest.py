"""Pytest configuration and fixtures."""

import pytest
from structlog.testing import capture_logs

from fpdec import CumulativeError, MantissaBackend
from tests.helpers.constants import ALL_BACKENDS


@pytest.fixture
def cum() -> CumulativeError:
    """Return a fresh cumulative-error cell."""
    return CumulativeError()


@pytest.fixture(params=ALL_BACKENDS, ids=lambda b: b.name)
def backend(request: pytest.FixtureRequest) -> MantissaBackend:
    """Run a test once per mantissa width."""
    return request.param


@pytest.fixture
def logs():
    """Capture structlog events emitted during the test."""
    with capture_logs() as captured:
        yield captured
