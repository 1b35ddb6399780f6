import os

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SEED_ON_START"] = "false"
os.environ.pop("VNPS_ENABLED", None)
os.environ.pop("SILENCE_RISK_ENABLED", None)

import pytest

from engagement_engine.db import init_db


@pytest.fixture(scope="session", autouse=True)
def _schema():
    """Fresh schema once per test session; tests isolate themselves by creating their own accounts."""
    init_db(drop=True)
    yield
