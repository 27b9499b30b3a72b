"""Tests for the CLI entry point and argument parsing."""

import json
import logging
from unittest.mock import patch

import pytest

import cli_serve
from args import parse_args
from cli_serve import _load_file_map_or_exit, _validate_server_config, run_redirect_server
from constants import ExitCodes
from redirector.server import RedirectServer, ServerConfig


def test_parse_args_defaults():
    """Defaults match the documented listen address and config file."""
    args = parse_args([])
    assert args.LISTEN_ADDR == ":8947"
    assert args.CONFIG == "config.json"
    assert args.TIMEOUT == 10
    assert args.UPSTREAM_URL == "https://api.github.com"
    assert args.LOG_LEVEL == "INFO"
    assert args.LOG_FILE is None


def test_parse_args_overrides():
    args = parse_args(["--addr", "unix:/tmp/r.sock", "-c", "files.yaml", "--timeout", "3", "--loglevel", "DEBUG"])
    assert args.LISTEN_ADDR == "unix:/tmp/r.sock"
    assert args.CONFIG == "files.yaml"
    assert args.TIMEOUT == 3
    assert args.LOG_LEVEL == "DEBUG"


def test_load_file_map_or_exit_rejects_bad_config(tmp_path):
    """Config errors abort with the file error exit code."""
    with pytest.raises(SystemExit) as exc_info:
        _load_file_map_or_exit(str(tmp_path / "missing.json"))
    assert exc_info.value.code == ExitCodes.FILE_ERROR.value


def test_validate_server_config_rejects_bad_address():
    with pytest.raises(SystemExit) as exc_info:
        _validate_server_config(ServerConfig(listen_addr="not-an-address"))
    assert exc_info.value.code == ExitCodes.FILE_ERROR.value


def test_validate_server_config_rejects_non_positive_timeout():
    with pytest.raises(SystemExit):
        _validate_server_config(ServerConfig(timeout=0))


def test_validate_server_config_accepts_defaults():
    _validate_server_config(ServerConfig())


class TestRunRedirectServer:
    """Tests for the full CLI flow with the server loop patched out."""

    def teardown_method(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            if isinstance(handler, logging.FileHandler):
                root.removeHandler(handler)
                handler.close()

    def test_starts_server_with_loaded_mapping(self, tmp_path, monkeypatch):
        """The loaded mapping and CLI settings are handed to the server."""
        monkeypatch.setenv("RELEASE_REDIRECT_LOG_LEVEL", "INFO")
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"files": {"tool": "acme/tool"}}), encoding="utf-8")
        log_path = tmp_path / "redirect.log"
        args = parse_args([
            "--config", str(config_path),
            "--addr", "127.0.0.1:9999",
            "--logfile", str(log_path),
        ])

        with patch.object(cli_serve, "run_server_sync") as run_sync:
            run_redirect_server(args)

        config, file_map = run_sync.call_args[0]
        assert file_map == {"tool": "acme/tool"}
        assert config.listen_addr == "127.0.0.1:9999"
        assert config.github_token is None
        assert log_path.exists()

    def test_listen_failure_exits_with_connection_error(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RELEASE_REDIRECT_LOG_LEVEL", "INFO")
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"files": {}}), encoding="utf-8")
        args = parse_args(["--config", str(config_path)])

        with patch.object(cli_serve, "run_server_sync", side_effect=OSError("address in use")):
            with pytest.raises(SystemExit) as exc_info:
                run_redirect_server(args)

        assert exc_info.value.code == ExitCodes.CONNECTION_ERROR.value


def test_zero_timeout_from_cli_is_rejected():
    """An explicit zero timeout is not replaced by the default."""
    config = ServerConfig.from_args(parse_args(["--timeout", "0"]))
    assert config.timeout == 0
    with pytest.raises(SystemExit):
        _validate_server_config(config)


def test_fractional_timeout_from_cli():
    """Sub-second timeouts reach the resolver unchanged."""
    config = ServerConfig.from_args(parse_args(["--timeout", "0.5"]))
    assert config.timeout == 0.5

    server = RedirectServer(config, {"tool": "acme/tool"})
    assert server._resolver._timeout.total == 0.5
