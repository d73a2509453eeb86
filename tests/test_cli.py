"""Tests for the soapsig command-line tool."""

import io
import json

import pytest

from soapsig import cli
from soapsig.config import get_settings

BODY = '<Foo a="1">x</Foo>'


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the CLI from replacing pytest's log handlers."""
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def files(tmp_path, signed_message, signer_pem, stranger_pem):
    message = tmp_path / "message.xml"
    message.write_text(signed_message(BODY), encoding="utf-8")
    signer = tmp_path / "signer.pem"
    signer.write_bytes(signer_pem)
    stranger = tmp_path / "stranger.pem"
    stranger.write_bytes(stranger_pem)
    return {"message": message, "signer": signer, "stranger": stranger, "dir": tmp_path}


class TestVerifyCommand:
    """soapsig verify"""

    def test_valid(self, files, capsys):
        code = cli.main(["--no-color", "verify", str(files["message"]), "--key", str(files["signer"])])

        assert code == cli.EXIT_OK
        assert capsys.readouterr().out.strip() == "VALID"

    def test_invalid(self, files, capsys):
        code = cli.main(["--no-color", "verify", str(files["message"]), "--key", str(files["stranger"])])

        assert code == cli.EXIT_INVALID
        assert capsys.readouterr().out.strip() == "INVALID"

    def test_json_report(self, files, capsys):
        code = cli.main(["--json", "verify", str(files["message"]), "-k", str(files["signer"])])

        report = json.loads(capsys.readouterr().out)
        assert code == cli.EXIT_OK
        assert report["valid"] is True
        assert report["canonical_length"] == len(BODY)

    def test_key_from_environment(self, files, capsys, monkeypatch):
        monkeypatch.setenv("SOAPSIG_PUBLIC_KEY_FILE", str(files["signer"]))
        get_settings.cache_clear()

        assert cli.main(["--no-color", "verify", str(files["message"])]) == cli.EXIT_OK

    def test_missing_key_argument(self, files, capsys, monkeypatch):
        monkeypatch.delenv("SOAPSIG_PUBLIC_KEY_FILE", raising=False)

        assert cli.main(["verify", str(files["message"])]) == cli.EXIT_USAGE
        assert "public key is required" in capsys.readouterr().err

    def test_key_file_not_found(self, files, capsys):
        code = cli.main(["verify", str(files["message"]), "--key", str(files["dir"] / "nope.pem")])
        assert code == cli.EXIT_USAGE

    def test_message_file_not_found(self, files, capsys):
        code = cli.main(["verify", str(files["dir"] / "nope.xml"), "--key", str(files["signer"])])
        assert code == cli.EXIT_USAGE

    def test_missing_signature_reported(self, files, build_message, capsys):
        files["message"].write_text(build_message(BODY), encoding="utf-8")

        code = cli.main(["--json", "verify", str(files["message"]), "--key", str(files["signer"])])

        error = json.loads(capsys.readouterr().out)
        assert code == cli.EXIT_ERROR
        assert error["error"] == "MissingSignatureError"
        assert error["stage"] == "signature"
        assert error["path"] == "/soap:Envelope/soap:Header/Signature"

    def test_malformed_message_reported(self, files, capsys):
        files["message"].write_text("<soap:Envelope", encoding="utf-8")

        code = cli.main(["--no-color", "verify", str(files["message"]), "--key", str(files["signer"])])

        assert code == cli.EXIT_ERROR
        assert "ERROR [parse]" in capsys.readouterr().err

    def test_stdin(self, files, capsys, monkeypatch):
        data = files["message"].read_bytes()
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(data)))

        assert cli.main(["--no-color", "verify", "-", "--key", str(files["signer"])]) == cli.EXIT_OK


class TestCanonicalizeCommand:
    """soapsig canonicalize"""

    def test_output_file(self, files):
        output = files["dir"] / "body.c14n"

        code = cli.main(["canonicalize", str(files["message"]), "--output", str(output)])

        assert code == cli.EXIT_OK
        assert output.read_bytes() == b'<Foo a="1">x</Foo>'

    def test_missing_body(self, files, capsys):
        files["message"].write_text(
            '<soap:Envelope xmlns:soap="http://www.w3.org/2001/06/soap-envelope"/>',
            encoding="utf-8",
        )

        assert cli.main(["--no-color", "canonicalize", str(files["message"])]) == cli.EXIT_ERROR
        assert "ERROR [body]" in capsys.readouterr().err


class TestSignatureCommand:
    """soapsig signature"""

    def test_prints_value(self, files, capsys):
        assert cli.main(["signature", str(files["message"])]) == cli.EXIT_OK

        value = capsys.readouterr().out.strip()
        assert len(value) == 344  # base64 of a 256-byte signature

    def test_json(self, files, capsys):
        assert cli.main(["--json", "signature", str(files["message"])]) == cli.EXIT_OK
        assert "signature" in json.loads(capsys.readouterr().out)


class TestParser:
    """Argument handling."""

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == cli.EXIT_OK
        assert "usage" in capsys.readouterr().out

    def test_log_level_choices(self):
        with pytest.raises(SystemExit):
            cli.main(["--log-level", "loud", "signature", "x.xml"])


class TestColors:
    """Color state belongs to one run."""

    def test_disabled_run_does_not_leak(self, files, capsys):
        assert cli.main(["--no-color", "signature", str(files["message"])]) == cli.EXIT_OK

        colors = cli.Colors()
        assert colors.GREEN == "\033[92m"
        assert colors.colored("VALID", colors.GREEN) == "\033[92mVALID\033[0m"

    def test_disabled_instance(self):
        colors = cli.Colors(enabled=False)
        assert colors.colored("INVALID", colors.RED + colors.BOLD) == "INVALID"


class TestSettingsErrors:
    """Bad environment values are reported, not raised."""

    def test_invalid_log_level_env(self, files, capsys, monkeypatch):
        monkeypatch.setenv("SOAPSIG_LOG_LEVEL", "verbose")

        assert cli.main(["signature", str(files["message"])]) == cli.EXIT_USAGE
        assert "Invalid SOAPSIG_* settings" in capsys.readouterr().err
