"""Tests for settings, path helpers and logging setup."""

import logging
from pathlib import Path

from chatterbots import logging_config
from chatterbots.config import DEFAULT_GREETING_PROMPT, Settings
from chatterbots.paths import repo_root, resolve_repo_path


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("EVENT_LOG_SIZE", raising=False)
    monkeypatch.delenv("GREETING_PROMPT", raising=False)

    settings = Settings(_env_file=None)

    assert settings.greeting_prompt == DEFAULT_GREETING_PROMPT
    assert settings.event_log_size == 200
    assert settings.personal_personas_key == "chatterbots-personal-agents"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("EVENT_LOG_SIZE", "5")
    monkeypatch.setenv("STATE_DIR", "~/chatterbots-state")
    monkeypatch.setenv("GREETING_PROMPT", "   ")

    settings = Settings(_env_file=None)

    assert settings.event_log_size == 5
    assert settings.state_dir == Path("~/chatterbots-state").expanduser()
    assert settings.greeting_prompt == DEFAULT_GREETING_PROMPT


def test_cors_origins_follow_frontend_port(monkeypatch):
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    monkeypatch.setenv("FRONTEND_PORT", "5173")

    settings = Settings(_env_file=None)

    assert settings.cors_origins[0] == "http://localhost:5173"


def test_resolve_repo_path():
    assert resolve_repo_path(Path("data/state")) == repo_root() / "data" / "state"
    absolute = Path("/tmp/state").resolve()
    assert resolve_repo_path(absolute) == absolute


def test_rotate_logs_shifts_backups(tmp_path):
    current = tmp_path / "server.log"
    current.write_bytes(b"x" * (10 * 1024 * 1024))
    (tmp_path / "server.log.1").write_text("older", encoding="utf-8")

    logging_config.rotate_logs(tmp_path)

    assert not current.exists()
    assert (tmp_path / "server.log.1").stat().st_size == 10 * 1024 * 1024
    assert (tmp_path / "server.log.2").read_text(encoding="utf-8") == "older"


def test_rotate_logs_keeps_small_file(tmp_path):
    current = tmp_path / "server.log"
    current.write_text("small", encoding="utf-8")

    logging_config.rotate_logs(tmp_path)

    assert current.read_text(encoding="utf-8") == "small"


def test_setup_logging_writes_server_log(tmp_path, monkeypatch):
    monkeypatch.setattr(logging_config, "_initialized", False)
    root = logging.getLogger()
    previous_handlers = root.handlers[:]
    previous_level = root.level

    try:
        logging_config.setup_logging(logs_dir=tmp_path, level="debug")
        logging.getLogger("chatterbots.test").info("hello from the test")
        for handler in root.handlers:
            handler.flush()

        content = (tmp_path / "server.log").read_text(encoding="utf-8")
        assert "Server started at:" in content
        assert "chatterbots.test - hello from the test" in content
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = previous_handlers
        root.setLevel(previous_level)
