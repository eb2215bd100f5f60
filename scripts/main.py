from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

from dotenv import load_dotenv

from mcp_servers.mcp_server_random import SERVER_NAME, SERVER_VERSION, mcp

logger = logging.getLogger(__name__)

TRANSPORTS = ("stdio", "sse", "streamable-http")
LOOPBACK_HOSTS = {"127.0.0.1", "localhost", "::1"}
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(slots=True)
class Settings:
    host: str = "127.0.0.1"
    port: int = 6767
    transport: str = "streamable-http"
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def _parse_port(raw: str, source: str) -> int:
    try:
        port = int(raw)
    except ValueError as exc:
        raise ValueError(f"{source} must be an integer, got {raw!r}") from exc
    if not 0 < port < 65536:
        raise ValueError(f"{source} must be between 1 and 65535, got {port}")
    return port


def _parse_transport(raw: str, source: str) -> str:
    transport = raw.strip().lower()
    if transport not in TRANSPORTS:
        raise ValueError(f"{source} must be one of {', '.join(TRANSPORTS)}, got {raw!r}")
    return transport


def _parse_log_level(raw: str, source: str) -> str:
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{source} is not a known log level: {raw!r}")
    return level


def _resolve_optional_path(project_root: Path, value: str) -> Path:
    path_value = Path(value).expanduser()
    return path_value if path_value.is_absolute() else (project_root / path_value).resolve()


def load_settings(env_filename: str = ".env", project_root: Optional[Path] = None) -> Settings:
    project_root = project_root or Path(__file__).resolve().parent.parent
    env_file = project_root / env_filename

    if env_file.exists():
        load_dotenv(env_file, override=False)

    log_file_raw = os.getenv("LOG_FILE", "").strip()
    return Settings(
        host=os.getenv("RANDOM_MCP_HOST", "127.0.0.1").strip() or "127.0.0.1",
        port=_parse_port(os.getenv("RANDOM_MCP_PORT", "6767"), "RANDOM_MCP_PORT"),
        transport=_parse_transport(
            os.getenv("RANDOM_MCP_TRANSPORT", "streamable-http"), "RANDOM_MCP_TRANSPORT"
        ),
        log_level=_parse_log_level(os.getenv("LOG_LEVEL", "INFO"), "LOG_LEVEL"),
        log_file=_resolve_optional_path(project_root, log_file_raw) if log_file_raw else None,
    )


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.addr:
        settings.host = args.addr
    if args.port is not None:
        settings.port = _parse_port(str(args.port), "--port")
    if args.transport:
        settings.transport = args.transport
    if args.log_level:
        settings.log_level = _parse_log_level(args.log_level, "--log-level")
    return settings


def configure_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=stream or sys.stdout,
        force=True,
    )


def configure_file_logging(log_path: Path) -> Path:
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if getattr(handler, "_is_random_mcp_file_handler", False):
            return log_path

    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(root_logger.level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    file_handler._is_random_mcp_file_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(file_handler)
    logging.info("File logging enabled at %s", log_path)
    return log_path


def server_url(settings: Settings) -> str:
    if settings.transport == "stdio":
        return "stdio"
    path = mcp.settings.sse_path if settings.transport == "sse" else mcp.settings.streamable_http_path
    return f"http://{settings.host}:{settings.port}{path}"


def run_server(settings: Settings) -> None:
    mcp.settings.host = settings.host
    mcp.settings.port = settings.port
    mcp.settings.log_level = settings.log_level
    if settings.host not in LOOPBACK_HOSTS:
        # Host-header allow list set up by FastMCP only covers loopback names.
        mcp.settings.transport_security = None

    logger.info("Starting %s %s", SERVER_NAME, SERVER_VERSION)
    logger.info("MCP server listening on %s", server_url(settings))
    mcp.run(transport=settings.transport)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="MCP server for cryptographically secure random numbers and strings."
    )
    parser.add_argument(
        "--env",
        default=".env",
        help="Path to the environment file relative to project root (default: .env).",
    )
    parser.add_argument(
        "--addr",
        help="Listen address (falls back to RANDOM_MCP_HOST env, default 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Listen port (falls back to RANDOM_MCP_PORT env, default 6767).",
    )
    parser.add_argument(
        "--transport",
        choices=TRANSPORTS,
        help="Transport protocol to use (falls back to RANDOM_MCP_TRANSPORT env, default streamable-http).",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (falls back to LOG_LEVEL env, default INFO).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    settings = apply_overrides(load_settings(args.env), args)

    # stdout carries the protocol itself on the stdio transport.
    stream = sys.stderr if settings.transport == "stdio" else sys.stdout
    configure_logging(settings.log_level, stream)
    if settings.log_file is not None:
        configure_file_logging(settings.log_file)

    try:
        run_server(settings)
    except Exception:
        logger.exception("Unable to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
