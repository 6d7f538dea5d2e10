import pytest

from fitscore import main


@pytest.fixture(autouse=True)
def _reset_rate_limit():
    # TestClient always reports the same client host, so buckets would drain across tests
    main._buckets.clear()
    yield
    main._buckets.clear()
