from finvision.config.settings import ProviderSettings, Settings

_KEY_VARS = ("FINVISION_GEMINI_API_KEY", "GEMINI_API_KEY", "API_KEY")


def test_api_key_read_from_unprefixed_env(monkeypatch) -> None:
    for name in _KEY_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("API_KEY", "from-env")

    assert ProviderSettings(_env_file=None).gemini_api_key == "from-env"


def test_prefixed_key_wins_over_generic_names(monkeypatch) -> None:
    monkeypatch.setenv("API_KEY", "generic")
    monkeypatch.setenv("FINVISION_GEMINI_API_KEY", "specific")

    assert ProviderSettings(_env_file=None).gemini_api_key == "specific"


def test_missing_key_is_none(monkeypatch) -> None:
    for name in _KEY_VARS:
        monkeypatch.delenv(name, raising=False)

    provider_settings = ProviderSettings(_env_file=None)

    assert provider_settings.gemini_api_key is None
    assert provider_settings.gemini_model == "gemini-2.5-flash"
    assert provider_settings.history_base_url is None


def test_log_level_alias(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert Settings(_env_file=None).log_level == "debug"
