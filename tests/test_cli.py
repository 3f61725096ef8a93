"""
Test suite for the staticserve CLI.
"""

from click.testing import CliRunner

from staticserve import __version__
from staticserve.cli import cli


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_version_command(self):
        """Test version command."""
        runner = CliRunner()
        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_version_option(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_option(self):
        """Test help option."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "serve" in result.output
        assert "version" in result.output

    def test_serve_help(self):
        """Test serve command help."""
        runner = CliRunner()
        result = runner.invoke(cli, ["serve", "--help"])

        assert result.exit_code == 0
        assert "--port" in result.output
        assert "--host" in result.output
        assert "--strict-paths" in result.output
        assert "--tls-cert" in result.output


class TestServeValidation:
    """Test argument checks that run before the server starts."""

    def test_tls_cert_without_key(self, tmp_path):
        cert = tmp_path / "cert.pem"
        cert.write_text("not really a cert")

        runner = CliRunner()
        result = runner.invoke(cli, ["serve", str(tmp_path), "--tls-cert", str(cert)])

        assert result.exit_code != 0
        assert "--tls-key" in result.output

    def test_path_must_be_directory(self, tmp_path):
        f = tmp_path / "file.txt"
        f.write_text("x")

        runner = CliRunner()
        result = runner.invoke(cli, ["serve", str(f)])

        assert result.exit_code != 0

    def test_missing_path(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["serve", str(tmp_path / "nope")])

        assert result.exit_code != 0

    def test_window_range(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["serve", str(tmp_path), "--window-mb", "0"])

        assert result.exit_code != 0
