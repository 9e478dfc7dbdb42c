"""Tests for the SEP-1 and SEP-24 suites against a mocked anchor."""

import json

import httpx
import pytest
from stellar_sdk import StrKey

from anchorcheck.config import RunConfig
from anchorcheck.errors import UnknownSuiteError
from anchorcheck.failures import UNEXPECTED_STATUS_CODE
from anchorcheck.graph import build_plan
from anchorcheck.models import TestStatus
from anchorcheck.runner import Runner
from anchorcheck.suites import SUITES, get_suite, select_suites, sep1, sep24


HOME = "https://anchor.example.com"

TOML = """
NETWORK_PASSPHRASE = "Test SDF Network ; September 2015"
TRANSFER_SERVER_SEP0024 = "https://anchor.example.com/sep24"
"""

INFO = {
    "deposit": {"USDC": {"enabled": True, "min_amount": 1}, "SRT": {"enabled": False}},
    "withdraw": {"USDC": {"enabled": True}},
    "fee": {"enabled": False},
}


class MockAnchor:
    """Serves a configurable anchor and records the requests it receives."""

    def __init__(self, toml: str = TOML, info: dict | None = None, deposit_status: int = 403) -> None:
        self.toml = toml
        self.info = INFO if info is None else info
        self.deposit_status = deposit_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/.well-known/stellar.toml":
            return httpx.Response(200, text=self.toml)
        if path == "/sep24/info":
            return httpx.Response(200, json=self.info)
        if path == "/sep24" + sep24.DEPOSIT_ENDPOINT:
            return httpx.Response(self.deposit_status, json={"error": "forbidden"})
        return httpx.Response(404)

    def runner(self) -> Runner:
        return Runner(client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(self)))


def statuses(result) -> dict[str, TestStatus]:
    return {r.definition.assertion: r.status for r in result.runs}


class TestRegistry:
    def test_registered_suites_plan(self):
        for sep, tests in SUITES.items():
            plan = build_plan(tests)
            assert all(d in plan.order for d in tests)

    def test_sep24_pulls_in_toml_test(self):
        plan = build_plan(sep24.tests)
        assert plan.order[0] is sep1.toml_exists

    def test_select_suites_dedupes(self):
        suites = select_suites([24, 1, 24])
        assert list(suites) == ["SEP-24", "SEP-1"]

    def test_unknown_suite(self):
        with pytest.raises(UnknownSuiteError, match="SEP-6"):
            get_suite(6)


class TestSep1:
    @pytest.mark.asyncio
    async def test_compliant_toml(self):
        anchor = MockAnchor()
        result = await anchor.runner().run(sep1.tests, RunConfig(home_domain=HOME))
        assert result.ok
        assert result.stats.total == 2
        assert str(anchor.requests[0].url) == f"{HOME}/.well-known/stellar.toml"

    @pytest.mark.asyncio
    async def test_missing_passphrase(self):
        anchor = MockAnchor(toml='TRANSFER_SERVER_SEP0024 = "https://x"')
        result = await anchor.runner().run(sep1.tests, RunConfig(home_domain=HOME))
        assert result.runs[1].failure.mode == "NETWORK_PASSPHRASE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unparsable_toml_skips_dependents(self):
        anchor = MockAnchor(toml="NETWORK_PASSPHRASE = ")
        result = await anchor.runner().run(sep1.tests, RunConfig(home_domain=HOME))
        assert result.runs[0].failure.mode == "TOML_PARSE_ERROR"
        assert result.runs[1].status is TestStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_missing_toml(self):
        anchor = MockAnchor()
        config = RunConfig(home_domain=HOME + "/missing")
        result = await anchor.runner().run(sep1.tests, config)
        assert result.runs[0].failure.mode == UNEXPECTED_STATUS_CODE
        assert result.stats.total == 1


class TestSep24:
    @pytest.mark.asyncio
    async def test_compliant_anchor(self):
        anchor = MockAnchor()
        config = RunConfig(home_domain=HOME)
        result = await anchor.runner().run(sep24.tests, config)
        assert result.ok, [r.failure for r in result.runs if r.failure]
        assert result.stats.total == 5
        assert config.asset_code == "USDC"

        deposit = anchor.requests[-1]
        body = json.loads(deposit.content)
        assert deposit.method == "POST"
        assert body["asset_code"] == "USDC"
        assert StrKey.is_valid_ed25519_public_key(body["account"])

    @pytest.mark.asyncio
    async def test_http_transfer_server(self):
        anchor = MockAnchor(toml=TOML.replace("https://anchor", "http://anchor"))
        result = await anchor.runner().run(sep24.tests, RunConfig(home_domain=HOME))
        failure = result.runs[1].failure
        assert failure.mode == "NO_HTTPS"
        assert failure.actual == "http://anchor.example.com/sep24"
        assert [r.status for r in result.runs[2:]] == [TestStatus.SKIPPED] * 3
        assert result.stats.total == 2

    @pytest.mark.asyncio
    async def test_trailing_slash(self):
        anchor = MockAnchor(toml=TOML.replace("/sep24", "/sep24/"))
        result = await anchor.runner().run(sep24.tests, RunConfig(home_domain=HOME))
        assert result.runs[1].failure.mode == "ENDS_WITH_SLASH"

    @pytest.mark.asyncio
    async def test_missing_transfer_server(self):
        anchor = MockAnchor(toml='NETWORK_PASSPHRASE = "x"')
        result = await anchor.runner().run(sep24.tests, RunConfig(home_domain=HOME))
        assert result.runs[1].failure.mode == "TRANSFER_SERVER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_info_schema_violation(self):
        anchor = MockAnchor(info={"deposit": {"USDC": {}}, "withdraw": {}})
        result = await anchor.runner().run(sep24.tests, RunConfig(home_domain=HOME))
        failure = result.runs[2].failure
        assert failure.mode == "INVALID_SCHEMA"
        assert "'fee' is a required property" in failure.message
        assert "/deposit/USDC: 'enabled' is a required property" in failure.message
        assert statuses(result)["requires a SEP-10 JWT"] is TestStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_configured_asset_not_found(self):
        anchor = MockAnchor()
        result = await anchor.runner().run(sep24.tests, RunConfig(home_domain=HOME, asset_code="EURT"))
        assert result.runs[3].failure.mode == "CONFIGURED_ASSET_CODE_NOT_FOUND"
        assert "EURT" in result.runs[3].failure.message

    @pytest.mark.asyncio
    async def test_configured_asset_not_enabled(self):
        anchor = MockAnchor()
        result = await anchor.runner().run(sep24.tests, RunConfig(home_domain=HOME, asset_code="SRT"))
        assert result.runs[3].failure.mode == "CONFIGURED_ASSET_CODE_NOT_ENABLED"

    @pytest.mark.asyncio
    async def test_no_enabled_assets(self):
        info = {**INFO, "deposit": {"SRT": {"enabled": False}}}
        anchor = MockAnchor(info=info)
        config = RunConfig(home_domain=HOME)
        result = await anchor.runner().run(sep24.tests, config)
        assert result.runs[3].failure.mode == "NO_ASSET_CODES"
        assert config.asset_code is None

    @pytest.mark.asyncio
    async def test_deposit_without_token_accepted(self):
        anchor = MockAnchor(deposit_status=200)
        result = await anchor.runner().run(sep24.tests, RunConfig(home_domain=HOME))
        failure = result.runs[4].failure
        assert failure.mode == UNEXPECTED_STATUS_CODE
        assert (failure.expected, failure.actual) == (403, 200)

    @pytest.mark.asyncio
    async def test_suites_run_together(self):
        anchor = MockAnchor()
        result = await anchor.runner().run_suites(select_suites([1, 24]), RunConfig(home_domain=HOME))
        assert result.ok
        assert [s.name for s in result.suite_runs] == ["SEP-1", "SEP-24"]
        # toml_exists runs in both suites but is counted once overall
        assert result.stats.total == 6
        assert [s.stats.total for s in result.suite_runs] == [2, 5]
