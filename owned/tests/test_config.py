"""Tests for environment and YAML configuration."""
from owned import config


def test_defaults(monkeypatch):
    for name in ("OWNED_CONFIG", "OWNED_DB_PATH", "OWNED_STATE_PATH", "OWNED_AUDIT_ENABLED",
                 "OWNED_API_HOST", "OWNED_API_PORT"):
        monkeypatch.delenv(name, raising=False)
    assert config.get_db_path() == config.DEFAULT_DB_PATH
    assert config.get_state_path() == config.DEFAULT_STATE_PATH
    assert config.audit_enabled() is True
    assert config.get_api_bind() == (config.DEFAULT_API_HOST, config.DEFAULT_API_PORT)


def test_yaml_file(tmp_path, monkeypatch):
    settings = tmp_path / "owned.yaml"
    settings.write_text(
        "db_path: /srv/owned/witness.db\n"
        "audit_enabled: false\n"
        "api:\n"
        "  host: 0.0.0.0\n"
        "  port: 9000\n"
    )
    for name in ("OWNED_DB_PATH", "OWNED_AUDIT_ENABLED", "OWNED_API_HOST", "OWNED_API_PORT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OWNED_CONFIG", str(settings))

    assert str(config.get_db_path()) == "/srv/owned/witness.db"
    assert config.audit_enabled() is False
    assert config.get_api_bind() == ("0.0.0.0", 9000)


def test_env_wins_over_yaml(tmp_path, monkeypatch):
    settings = tmp_path / "owned.yaml"
    settings.write_text("audit_enabled: false\napi:\n  port: 9000\n")
    monkeypatch.setenv("OWNED_CONFIG", str(settings))
    monkeypatch.setenv("OWNED_AUDIT_ENABLED", "yes")
    monkeypatch.setenv("OWNED_API_PORT", "7000")

    assert config.audit_enabled() is True
    assert config.get_api_bind()[1] == 7000


def test_non_mapping_yaml_ignored(tmp_path):
    settings = tmp_path / "owned.yaml"
    settings.write_text("- just\n- a list\n")
    assert config.load_settings(settings) == {}
    assert config.load_settings(tmp_path / "missing.yaml") == {}
