import pytest

from gridexport.config import loadSettings


def test_defaults_without_sources():
    loaded = loadSettings(config_path=None, cli_overrides={})

    assert loaded.sources_used == []
    assert loaded.settings.page_size == 200
    assert loaded.settings.log_level == "INFO"


def test_priority_cli_over_env_over_config(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "\n".join([
            'api_base_url: "https://cfg.local"',
            'api_username: "cfg_user"',
            "page_size: 50",
            "api_retries: 1",
        ]),
        encoding="utf-8",
    )

    # ENV overrides config
    monkeypatch.setenv("GRIDEXPORT_API_BASE_URL", "https://env.local")
    monkeypatch.setenv("GRIDEXPORT_PAGE_SIZE", "75")
    monkeypatch.setenv("GRIDEXPORT_TLS_SKIP_VERIFY", "yes")

    # CLI overrides env
    loaded = loadSettings(
        config_path=str(cfg),
        cli_overrides={"api_base_url": "https://cli.local", "api_password": None},
    )

    settings = loaded.settings
    assert settings.api_base_url == "https://cli.local"
    assert settings.api_username == "cfg_user"
    assert settings.page_size == 75
    assert settings.api_retries == 1
    assert settings.tls_skip_verify is True
    assert settings.api_password is None
    assert loaded.sources_used == ["config", "env", "cli"]


def test_invalid_env_boolean_raises(monkeypatch):
    monkeypatch.setenv("GRIDEXPORT_TLS_SKIP_VERIFY", "maybe")

    with pytest.raises(ValueError):
        loadSettings(config_path=None, cli_overrides={})


def test_missing_config_file_is_ignored(tmp_path):
    loaded = loadSettings(config_path=str(tmp_path / "absent.yml"), cli_overrides={})

    assert "config" not in loaded.sources_used
