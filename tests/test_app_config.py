import pytest
from pydantic import ValidationError

from app.app_config import AppEnvironConfig
from app.cw.config import EnvironConfig


@pytest.fixture
def env_config():
    config = EnvironConfig()
    saved = dict(config._config)
    yield config
    config._config.clear()
    config._config.update(saved)


def test_get_bool(env_config):
    env_config._config.update({"A": "true", "B": "0", "C": " On ", "D": ""})

    assert env_config.get_bool("A") is True
    assert env_config.get_bool("B") is False
    assert env_config.get_bool("C") is True
    assert env_config.get_bool("D", True) is True
    assert env_config.get_bool("MISSING") is False


def test_get_int(env_config):
    env_config._config.update({"N": "42", "BAD": "forty"})

    assert env_config.get_int("N", 1) == 42
    assert env_config.get_int("BAD", 7) == 7
    assert env_config.get_int("MISSING", 3) == 3


def test_database_url_precedence(env_config):
    env_config._config.update({"DATABASE_URL": "", "POSTGRES_URL": "postgresql://b"})
    assert env_config.get_database_url() == "postgresql://b"

    env_config._config["DATABASE_URL"] = "postgresql://a"
    assert env_config.get_database_url() == "postgresql://a"


def test_singleton():
    assert EnvironConfig() is EnvironConfig()


def test_app_defaults():
    settings = AppEnvironConfig()

    assert settings.DATABASE_URL is None
    assert settings.IDENTITY_POLICY == "deterministic"
    assert settings.IDENTITY_FORMAT == "steam64"
    assert settings.SESSION_TTL_SECONDS == 86400
    assert settings.DEFAULT_CLIENT_VERSION == "1.0.6.0"
    assert settings.DEBUG_BUFFER_SIZE == 16


@pytest.mark.parametrize("field", ["IDENTITY_POLICY", "IDENTITY_FORMAT", "IDENTITY_HASH"])
def test_identity_settings_rejected(field):
    with pytest.raises(ValidationError, match=field):
        AppEnvironConfig(**{field: "bogus"})


def test_identity_settings_accepted():
    settings = AppEnvironConfig(IDENTITY_POLICY="random", IDENTITY_FORMAT="tag", IDENTITY_HASH="md5")

    assert (settings.IDENTITY_POLICY, settings.IDENTITY_FORMAT, settings.IDENTITY_HASH) == ("random", "tag", "md5")


def test_environment_defaults_are_validated():
    assert AppEnvironConfig.model_config["validate_default"] is True
