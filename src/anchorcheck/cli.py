from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from anchorcheck.config import RunConfig
from anchorcheck.errors import ConfigurationError
from anchorcheck.http import HttpSettings
from anchorcheck.reports import ConsoleReporter, JsonReporter, Reporter
from anchorcheck.runner import Runner, RunResult
from anchorcheck.suites import SUITES, select_suites
from anchorcheck.version import __version__


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2


class CLIApplication:
    """Top-level command router."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.parser = argparse.ArgumentParser(
            prog="anchorcheck",
            description="Check a Stellar anchor's services against the SEPs they implement.",
        )
        self.parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
        self.parser.add_argument(
            "--home-domain",
            dest="home_domain",
            help="Domain hosting /.well-known/stellar.toml (env: ANCHORCHECK_HOME_DOMAIN).",
        )
        self.parser.add_argument(
            "--seps",
            nargs="+",
            type=int,
            help=f"SEPs to check (available: {', '.join(str(s) for s in sorted(SUITES))}).",
        )
        self.parser.add_argument(
            "--asset-code",
            dest="asset_code",
            help="Asset to use; discovered from the server when omitted.",
        )
        self.parser.add_argument(
            "-v",
            "--verbose",
            action="count",
            default=0,
            help="Show skipped tests, success descriptions and network calls.",
        )
        self.parser.add_argument("-q", "--quiet", action="store_true", help="Only print failures and the summary.")
        self.parser.add_argument(
            "--concurrency",
            type=int,
            default=1,
            help="Number of suites to run at the same time (default: 1).",
        )
        self.parser.add_argument("--json", dest="json_path", help="Also write a JSON report to this path.")
        self.parser.add_argument("--trace", dest="trace_path", help="Write OpenTelemetry spans as JSONL to this path.")
        self.parser.add_argument("--debug", action="store_true", help="Enable debug logging.")

    def run(self, argv: Sequence[str] | None = None) -> int:
        load_dotenv(Path.cwd() / ".env")
        args = self.parser.parse_args(argv)
        return RunCommand(self.console, args).run()


class RunCommand:
    """Driver for a single `anchorcheck` invocation."""

    def __init__(self, console: Console, args: argparse.Namespace) -> None:
        self.console = console
        self.args = args
        self.verbosity = -1 if args.quiet else args.verbose

    def run(self) -> int:
        self._configure_logging()
        try:
            config = RunConfig(**self._config_overrides())
            suites = select_suites(config.seps)
        except ValidationError as e:
            self.console.print(f"[red]Invalid configuration:[/red]\n{escape(str(e))}")
            return EXIT_CONFIG_ERROR
        except ConfigurationError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")
            return EXIT_CONFIG_ERROR

        runner = Runner(
            reporters=self._reporters(),
            concurrency=self.args.concurrency,
            http_settings=HttpSettings(),
            enable_tracing=self.args.trace_path is not None,
            trace_output=self.args.trace_path,
        )
        try:
            result: RunResult = asyncio.run(runner.run_suites(suites, config))
        except ConfigurationError as e:
            self.console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
            return EXIT_CONFIG_ERROR
        return EXIT_OK if result.ok else EXIT_FAILED

    def _config_overrides(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        if self.args.home_domain:
            overrides["home_domain"] = self.args.home_domain
        if self.args.seps:
            overrides["seps"] = self.args.seps
        if self.args.asset_code:
            overrides["asset_code"] = self.args.asset_code
        if self.args.verbose:
            overrides["verbose"] = True
        return overrides

    def _reporters(self) -> list[Reporter]:
        reporters: list[Reporter] = [ConsoleReporter(self.console, verbosity=self.verbosity)]
        if self.args.json_path:
            reporters.append(JsonReporter(self.args.json_path))
        return reporters

    def _configure_logging(self) -> None:
        logging.basicConfig(
            level=logging.DEBUG if self.args.debug else logging.WARNING,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )


def main(argv: Sequence[str] | None = None) -> int:
    return CLIApplication().run(argv)


if __name__ == "__main__":
    sys.exit(main())
