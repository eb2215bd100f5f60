"""Tests for settings loading, logging setup and server startup."""
import logging
import os
import sys
from pathlib import Path

import pytest

import main
from main import (
    Settings,
    apply_overrides,
    configure_file_logging,
    load_settings,
    parse_args,
    server_url,
)

ENV_KEYS = (
    "RANDOM_MCP_HOST",
    "RANDOM_MCP_PORT",
    "RANDOM_MCP_TRANSPORT",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield monkeypatch
    # load_dotenv() writes straight into os.environ.
    for key in ENV_KEYS:
        os.environ.pop(key, None)


class TestLoadSettings:
    def test_defaults(self, clean_env, tmp_path):
        settings = load_settings(project_root=tmp_path)
        assert settings == Settings()
        assert settings.host == "127.0.0.1"
        assert settings.port == 6767
        assert settings.transport == "streamable-http"
        assert settings.log_file is None

    def test_reads_env_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text(
            "RANDOM_MCP_HOST=0.0.0.0\n"
            "RANDOM_MCP_PORT=8080\n"
            "RANDOM_MCP_TRANSPORT=sse\n"
            "LOG_LEVEL=debug\n"
            "LOG_FILE=logs/random.log\n",
            encoding="utf-8",
        )
        settings = load_settings(project_root=tmp_path)
        assert settings.host == "0.0.0.0"
        assert settings.port == 8080
        assert settings.transport == "sse"
        assert settings.log_level == "DEBUG"
        assert settings.log_file == (tmp_path / "logs" / "random.log").resolve()

    def test_environment_wins_over_env_file(self, clean_env, tmp_path):
        (tmp_path / "custom.env").write_text("RANDOM_MCP_PORT=8080\n", encoding="utf-8")
        clean_env.setenv("RANDOM_MCP_PORT", "9090")
        assert load_settings("custom.env", project_root=tmp_path).port == 9090

    @pytest.mark.parametrize("port", ["http", "0", "70000"])
    def test_invalid_port(self, clean_env, tmp_path, port):
        clean_env.setenv("RANDOM_MCP_PORT", port)
        with pytest.raises(ValueError, match="RANDOM_MCP_PORT"):
            load_settings(project_root=tmp_path)

    def test_invalid_transport(self, clean_env, tmp_path):
        clean_env.setenv("RANDOM_MCP_TRANSPORT", "websocket")
        with pytest.raises(ValueError, match="RANDOM_MCP_TRANSPORT"):
            load_settings(project_root=tmp_path)

    def test_invalid_log_level(self, clean_env, tmp_path):
        clean_env.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValueError, match="LOG_LEVEL"):
            load_settings(project_root=tmp_path)


class TestOverrides:
    def test_cli_flags_override_settings(self):
        args = parse_args(["--addr", "0.0.0.0", "--port", "7001", "--transport", "stdio", "--log-level", "warning"])
        settings = apply_overrides(Settings(), args)
        assert settings.host == "0.0.0.0"
        assert settings.port == 7001
        assert settings.transport == "stdio"
        assert settings.log_level == "WARNING"

    def test_absent_flags_keep_settings(self):
        settings = apply_overrides(Settings(port=8000), parse_args([]))
        assert settings.port == 8000
        assert settings.transport == "streamable-http"

    def test_invalid_cli_port(self):
        with pytest.raises(ValueError, match="--port"):
            apply_overrides(Settings(), parse_args(["--port", "0"]))


class TestServerUrl:
    def test_streamable_http(self):
        assert server_url(Settings()) == "http://127.0.0.1:6767/mcp"

    def test_sse(self):
        assert server_url(Settings(transport="sse", port=9000)) == "http://127.0.0.1:9000/sse"

    def test_stdio(self):
        assert server_url(Settings(transport="stdio")) == "stdio"


class TestFileLogging:
    def test_handler_installed_once(self, tmp_path):
        root_logger = logging.getLogger()
        log_path = tmp_path / "logs" / "random.log"
        try:
            configure_file_logging(log_path)
            configure_file_logging(log_path)
            handlers = [
                h for h in root_logger.handlers if getattr(h, "_is_random_mcp_file_handler", False)
            ]
            assert len(handlers) == 1
            assert log_path.parent.is_dir()
        finally:
            for handler in list(root_logger.handlers):
                if getattr(handler, "_is_random_mcp_file_handler", False):
                    root_logger.removeHandler(handler)
                    handler.close()


class TestStartup:
    def test_run_server_applies_settings(self, monkeypatch):
        calls = []
        monkeypatch.setattr(main.mcp, "run", lambda transport: calls.append(transport))
        monkeypatch.setattr(main.mcp.settings, "host", main.mcp.settings.host)
        monkeypatch.setattr(main.mcp.settings, "port", main.mcp.settings.port)
        monkeypatch.setattr(main.mcp.settings, "log_level", main.mcp.settings.log_level)

        main.run_server(Settings(host="127.0.0.1", port=7100, transport="sse"))

        assert calls == ["sse"]
        assert main.mcp.settings.port == 7100

    def test_startup_failure_exits_with_status_one(self, clean_env, monkeypatch):
        def _fail(settings):
            raise OSError("address already in use")

        monkeypatch.setattr(main, "run_server", _fail)
        monkeypatch.setattr(main, "configure_logging", lambda level, stream: None)
        with pytest.raises(SystemExit) as excinfo:
            main.main(["--env", "missing.env"])
        assert excinfo.value.code == 1

    def test_stdio_logs_to_stderr(self, clean_env, monkeypatch):
        streams = []
        monkeypatch.setattr(main, "run_server", lambda settings: None)
        monkeypatch.setattr(main, "configure_logging", lambda level, stream: streams.append(stream))
        main.main(["--env", "missing.env", "--transport", "stdio"])
        assert streams == [sys.stderr]
