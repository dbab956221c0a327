import pytest

from orderservice.config import AppConfig, Config, ConfigError, DBConfig, load_config


def test_defaults_applied_when_only_dsn_given():
    cfg = load_config({"DSN": "sqlite://"})
    assert cfg == Config(
        app=AppConfig(port="8080", is_debug_mode=True, environment="dev"),
        db=DBConfig(connection_string="sqlite://", migration_path="migrations"),
    )


def test_missing_dsn_is_an_error():
    with pytest.raises(ConfigError, match="DSN"):
        load_config({"SERVER_PORT": "9000"})


def test_values_taken_from_environment():
    cfg = load_config(
        {
            "DSN": "sqlite://",
            "SERVER_PORT": "9000",
            "DEBUG": "false",
            "ENVIRONMENT": "prod",
            "MIGRATION_PATH": "db/migrations",
        }
    )
    assert cfg.app.port == "9000"
    assert cfg.app.is_debug_mode is False
    assert cfg.app.environment == "prod"
    assert cfg.db.migration_path == "db/migrations"


@pytest.mark.parametrize("raw,expected", [("1", True), ("T", True), ("0", False), ("F", False)])
def test_debug_flag_accepts_boolean_spellings(raw, expected):
    assert load_config({"DSN": "x", "DEBUG": raw}).app.is_debug_mode is expected


def test_invalid_debug_flag_is_an_error():
    with pytest.raises(ConfigError, match="DEBUG"):
        load_config({"DSN": "x", "DEBUG": "maybe"})


def test_reads_process_environment_by_default(monkeypatch):
    monkeypatch.setenv("DSN", "sqlite:///from-env.db")
    monkeypatch.delenv("SERVER_PORT", raising=False)
    cfg = load_config()
    assert cfg.db.connection_string == "sqlite:///from-env.db"
    assert cfg.app.port == "8080"