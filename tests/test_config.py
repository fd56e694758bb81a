import pytest

from config import (
    DevelopmentSettings,
    ProductionSettings,
    Settings,
    TestingSettings,
    get_settings,
    get_settings_for_environment,
)


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestEnvironmentSettings:
    """Test environment-specific settings selection."""

    def test_testing_environment(self):
        settings = get_settings_for_environment("testing")

        assert isinstance(settings, TestingSettings)
        assert settings.database_url == "sqlite://"
        assert settings.rate_limit_enabled is False

    def test_production_environment(self):
        settings = get_settings_for_environment("PRODUCTION")

        assert isinstance(settings, ProductionSettings)
        assert settings.allowed_origins == []
        assert settings.debug is False

    def test_unknown_environment_uses_defaults(self):
        settings = get_settings_for_environment("staging")

        assert type(settings) is Settings
        assert settings.allow_same_account_transfer is False

    def test_app_env_selects_settings(self, monkeypatch, fresh_settings):
        monkeypatch.setenv("APP_ENV", "development")

        settings = get_settings()

        assert isinstance(settings, DevelopmentSettings)
        assert settings.log_level == "DEBUG"

    def test_environment_variables_override_defaults(self, monkeypatch, fresh_settings):
        monkeypatch.setenv("APP_ENV", "testing")
        monkeypatch.setenv("ALLOW_SAME_ACCOUNT_TRANSFER", "true")

        settings = get_settings()

        assert isinstance(settings, TestingSettings)
        assert settings.allow_same_account_transfer is True

    def test_running_under_testing_settings(self):
        assert isinstance(get_settings(), TestingSettings)
