import os

# Must be set before the app modules read their settings
os.environ.setdefault("APP_ENV", "testing")

import pytest

from db import reset_database


@pytest.fixture(autouse=True)
def reset_state():
    """Reset the database before each test."""
    reset_database()
