import pytest
from pydantic import ValidationError

from groupsplit.config import Settings


def make_settings(**overrides):
    values = {"BOT_TOKEN": "123:abc", "DATABASE_URL": "postgresql://localhost/groupsplit", **overrides}
    return Settings(_env_file=None, **values)


def test_defaults_and_normalisation():
    settings = make_settings(TZ="UTC", CURRENCY=" usd ", LOG_LEVEL="debug")

    assert settings.zoneinfo.key == "UTC"
    assert settings.currency == "USD"
    assert settings.log_level == "DEBUG"


def test_unknown_timezone_rejected():
    with pytest.raises(ValidationError):
        make_settings(TZ="Mars/Base")
