"""Tests for JsonReporter."""

import io
import json

import pytest

from anchorcheck.checks import check
from anchorcheck.config import RunConfig
from anchorcheck.failures import FailureKind
from anchorcheck.models import Result
from anchorcheck.reports import JsonReporter
from anchorcheck.runner import Runner


@check(assertion="passes", sep=1, group="TOML tests")
async def passes(config, ctx):
    return Result()


@check(
    assertion="fails",
    sep=1,
    group="TOML tests",
    dependencies=[passes],
    failure_modes={"BROKEN": FailureKind.from_template("broken", "It is broken")},
)
async def fails(config, ctx):
    return Result(failure=ctx.failure("BROKEN", expected=1, actual=2))


@check(assertion="skipped", sep=1, group="TOML tests", dependencies=[fails])
async def skipped(config, ctx):
    return Result()


class TestJsonReporter:
    @pytest.mark.asyncio
    async def test_writes_file(self, tmp_path):
        output = tmp_path / "reports" / "run.json"
        reporter = JsonReporter(output)
        await Runner(reporters=[reporter]).run([passes, fails, skipped], RunConfig(home_domain="x.org"), name="SEP-1")

        document = json.loads(output.read_text())
        assert document == reporter.document
        assert document["ok"] is False
        assert document["stats"]["total"] == 2
        assert document["stats"]["skipped"] == 1

        (suite,) = document["suites"]
        assert suite["name"] == "SEP-1"
        assert [r["status"] for r in suite["runs"]] == ["passed", "failed", "skipped"]
        assert suite["runs"][1]["failure"] == {
            "mode": "BROKEN",
            "name": "broken",
            "message": "It is broken",
            "expected": 1,
            "actual": 2,
        }
        assert suite["runs"][2]["skipped_because"] == "SEP-1 › TOML tests › fails"
        assert [d["assertion"] for d in suite["plan"]] == ["passes", "fails", "skipped"]
        assert suite["plan"][2]["dependencies"] == ["SEP-1 › TOML tests › fails"]

    @pytest.mark.asyncio
    async def test_writes_stream_without_path(self):
        stream = io.StringIO()
        await Runner(reporters=[JsonReporter(stream=stream)]).run([passes], RunConfig(home_domain="x.org"))
        document = json.loads(stream.getvalue())
        assert document["ok"] is True
        assert document["environment"]["anchorcheck_version"]
