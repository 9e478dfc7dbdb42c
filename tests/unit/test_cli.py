import logging

import httpx
import pytest
from rich.console import Console

from anchorcheck import cli, runner
from anchorcheck.cli import EXIT_CONFIG_ERROR, EXIT_FAILED, EXIT_OK, CLIApplication


TOML = 'NETWORK_PASSPHRASE = "Test SDF Network ; September 2015"\n'


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    # Values loaded from .env files are dropped again on teardown.
    for name in ("ANCHORCHECK_HOME_DOMAIN", "ANCHORCHECK_SEPS", "ANCHORCHECK_ASSET_CODE"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def mock_anchor(monkeypatch, toml: str = TOML):
    def handler(request):
        if request.url.path == "/.well-known/stellar.toml":
            return httpx.Response(200, text=toml)
        return httpx.Response(404)

    monkeypatch.setattr(
        runner,
        "build_client",
        lambda settings=None: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def make_app() -> CLIApplication:
    return CLIApplication(Console(record=True, width=120))


def test_passing_run_exits_ok(monkeypatch):
    mock_anchor(monkeypatch)
    app = make_app()
    exit_code = app.run(["--home-domain", "anchor.example.com", "--seps", "1"])
    assert exit_code == EXIT_OK
    assert "2 passed, 2 total" in app.console.export_text()


def test_failing_run_exits_failed(monkeypatch):
    mock_anchor(monkeypatch, toml='TRANSFER_SERVER = "https://x"\n')
    exit_code = make_app().run(["--home-domain", "anchor.example.com"])
    assert exit_code == EXIT_FAILED


def test_missing_home_domain(monkeypatch):
    app = make_app()
    assert app.run([]) == EXIT_CONFIG_ERROR
    assert "Invalid configuration" in app.console.export_text()


def test_unknown_sep():
    app = make_app()
    assert app.run(["--home-domain", "x.org", "--seps", "99"]) == EXIT_CONFIG_ERROR
    assert "No suite registered for SEP-99" in app.console.export_text()


def test_home_domain_from_dotenv(monkeypatch, tmp_path):
    mock_anchor(monkeypatch)
    (tmp_path / ".env").write_text("ANCHORCHECK_HOME_DOMAIN=anchor.example.com\n")
    assert make_app().run([]) == EXIT_OK


def test_json_report(monkeypatch, tmp_path):
    mock_anchor(monkeypatch)
    report = tmp_path / "report.json"
    assert make_app().run(["--home-domain", "x.org", "--json", str(report), "-q"]) == EXIT_OK
    assert report.exists()


def test_verbosity_flags():
    app = make_app()
    quiet = cli.RunCommand(app.console, app.parser.parse_args(["-q", "-v"]))
    verbose = cli.RunCommand(app.console, app.parser.parse_args(["-vv"]))
    assert quiet.verbosity == -1
    assert verbose.verbosity == 2


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        make_app().run(["--version"])
    assert exc_info.value.code == 0
    assert "anchorcheck" in capsys.readouterr().out
