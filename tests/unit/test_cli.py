"""
Unit tests for the command-line entry point.
"""

import socket
from pathlib import Path

import pytest

from minihttp import __version__
from minihttp.__main__ import build_parser, main
from minihttp.config import ServerConfig


class TestArgumentParser:
    """Tests for build_parser()."""

    def test_defaults_come_from_config(self):
        defaults = ServerConfig(port=9999, directory="/srv/files")
        args = build_parser(defaults).parse_args([])

        assert args.port == 9999
        assert args.directory == "/srv/files"
        assert args.host == "0.0.0.0"
        assert args.timeout == 30.0
        assert args.workers == 256
        assert args.log_level == "INFO"

    def test_overrides(self):
        args = build_parser(ServerConfig()).parse_args([
            "-H", "127.0.0.1",
            "-p", "8080",
            "-d", "/tmp/x",
            "-w", "4",
            "-t", "none",
            "-l", "debug",
            "--log-format", "json",
        ])

        assert args.host == "127.0.0.1"
        assert args.port == 8080
        assert args.directory == "/tmp/x"
        assert args.workers == 4
        assert args.timeout is None
        assert args.log_level == "DEBUG"
        assert args.log_format == "json"

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser(ServerConfig()).parse_args(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestMain:
    """Tests for main() failure paths."""

    def test_bind_failure_exits_1(self, capsys, tmp_path: Path):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            with pytest.raises(SystemExit) as exc_info:
                main(["--host", "127.0.0.1", "--port", str(port), "--directory", str(tmp_path)])

        assert exc_info.value.code == 1
        assert f"Failed to bind to 127.0.0.1:{port}" in capsys.readouterr().err

    def test_invalid_config_exits_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--workers", "0"])

        assert exc_info.value.code == 1
        assert "max_workers" in capsys.readouterr().err
