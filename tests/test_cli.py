"""Tests for the command-line entry point."""

import pytest

from bruggi_site import cli


class TestParseArgs:
    def test_defaults_to_build(self):
        args = cli.parse_args([])
        assert args.command == "build"
        assert args.workers == 1

    def test_options_without_command(self, tmp_path):
        args = cli.parse_args(["--root", str(tmp_path), "--verbose"])
        assert args.command == "build"
        assert args.root == tmp_path
        assert args.verbose

    def test_serve_port(self):
        args = cli.parse_args(["serve", "--port", "9000"])
        assert args.command == "serve"
        assert args.port == 9000

    def test_update_webcam(self, tmp_path):
        args = cli.parse_args(["update-webcam", str(tmp_path / "cam.jpg")])
        assert args.command == "update-webcam"
        assert args.path == tmp_path / "cam.jpg"


class TestMain:
    def test_build(self, site_root):
        cli.main(["build", "--root", str(site_root)])
        assert (site_root / "dist" / "en" / "index.html").is_file()

    def test_root_from_environment(self, site_root, monkeypatch):
        monkeypatch.setenv("BRUGGI_SITE_ROOT", str(site_root))
        cli.main([])
        assert (site_root / "dist" / "index.html").is_file()

    def test_fatal_error_exits_non_zero(self, site_root):
        (site_root / "content" / "galleries.toml").write_text("images = [", encoding="utf-8")
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--root", str(site_root)])
        assert excinfo.value.code == 1
