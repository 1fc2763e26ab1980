"""
Unit tests for the backup-drive CLI.

Tests:
- Argument parsing
- Configuration wiring (explicit --config, probing, hostname)
- Exit status and ERROR reporting
"""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from backup.src import main as cli
from config.exceptions import ConfigError


@pytest.fixture
def volume_root(dest, make_file):
    """Destination volume with a marker configuring host 'laptop'."""
    marker = dest / ".backup"
    marker.write_text(
        yaml.safe_dump({"laptop": {"includes": ["notes.txt", "docs/**"], "excludes": ["docs/private/**"]}}),
        encoding="utf-8",
    )
    return dest


@pytest.fixture(autouse=True)
def no_logging_reconfigure():
    """Keep the session logging config (stderr) during CLI tests."""
    with patch.object(cli, "configure_from_env"):
        yield


class TestParseArgs:
    """Tests argparse options."""

    def test_defaults(self):
        args = cli.parse_args([])

        assert args.quiet is False
        assert args.config is None
        assert args.media_root == Path("/media")
        assert args.hostname is None
        assert args.log_level is None

    def test_all_options(self):
        args = cli.parse_args(
            ["-q", "--config", "/x/.backup", "--media-root", "/mnt", "--hostname", "h", "--log-level", "DEBUG"]
        )

        assert args.quiet is True
        assert args.config == Path("/x/.backup")
        assert args.media_root == Path("/mnt")
        assert args.hostname == "h"
        assert args.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["--log-level", "LOUD"])


class TestMain:
    """Tests main() exit status and output."""

    def test_success_with_explicit_config(self, home, volume_root, make_file, capsys):
        make_file(home, "notes.txt", b"0123456789")

        with patch("pathlib.Path.home", return_value=home):
            status = cli.main(["--config", str(volume_root / ".backup"), "--hostname", "laptop"])

        assert status == 0
        assert (volume_root / "notes.txt").read_bytes() == b"0123456789"
        assert capsys.readouterr().out == "- notes.txt\n"

    def test_quiet(self, home, volume_root, make_file, capsys):
        make_file(home, "notes.txt", b"x")

        with patch("pathlib.Path.home", return_value=home):
            status = cli.main(["-q", "--config", str(volume_root / ".backup"), "--hostname", "laptop"])

        assert status == 0
        assert capsys.readouterr().out == ""

    def test_unknown_host_fails(self, home, volume_root, capsys):
        with patch("pathlib.Path.home", return_value=home):
            status = cli.main(["--config", str(volume_root / ".backup"), "--hostname", "desktop"])

        assert status == 1
        assert "ERROR hostname 'desktop' not found in configuration" in capsys.readouterr().err

    def test_hostname_defaults_to_machine(self, home, volume_root, make_file):
        make_file(home, "notes.txt", b"x")

        with patch("pathlib.Path.home", return_value=home), patch.object(
            cli.socket, "gethostname", return_value="laptop"
        ):
            assert cli.main(["--config", str(volume_root / ".backup")]) == 0

        assert (volume_root / "notes.txt").exists()

    def test_probes_media_root(self, tmp_path, home, make_file):
        make_file(home, "notes.txt", b"x")
        volume = tmp_path / "media" / "alice" / "USB"
        marker = make_file(volume, ".backup", yaml.safe_dump({"laptop": {"includes": ["notes.txt"]}}).encode())

        with patch("pathlib.Path.home", return_value=home), patch(
            "backup.src.config.volume.getpass.getuser", return_value="alice"
        ):
            status = cli.main(["--media-root", str(tmp_path / "media"), "--hostname", "laptop"])

        assert status == 0
        assert (marker.parent / "notes.txt").exists()

    def test_no_marker_fails(self, tmp_path, capsys):
        (tmp_path / "media" / "alice").mkdir(parents=True)

        with patch("backup.src.config.volume.getpass.getuser", return_value="alice"):
            status = cli.main(["--media-root", str(tmp_path / "media")])

        assert status == 1
        assert "ERROR no .backup file found" in capsys.readouterr().err

    def test_copy_failure_exit_status(self, home, volume_root, make_file, capsys):
        make_file(home, "notes.txt", b"x")
        # Directory where the file should go
        (volume_root / "notes.txt").mkdir()

        with patch("pathlib.Path.home", return_value=home):
            status = cli.main(["--config", str(volume_root / ".backup"), "--hostname", "laptop"])

        assert status == 1
        assert "creating destination file" in capsys.readouterr().err


class TestCurrentHostname:
    """Tests hostname lookup."""

    def test_hostname(self):
        with patch.object(cli.socket, "gethostname", return_value="box"):
            assert cli.current_hostname() == "box"

    def test_empty_hostname(self):
        with patch.object(cli.socket, "gethostname", return_value=""):
            with pytest.raises(ConfigError):
                cli.current_hostname()

    def test_hostname_error(self):
        with patch.object(cli.socket, "gethostname", side_effect=OSError("nope")):
            with pytest.raises(ConfigError, match="getting hostname"):
                cli.current_hostname()
