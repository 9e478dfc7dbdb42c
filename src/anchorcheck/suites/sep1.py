"""SEP-1: stellar.toml discovery."""

import tomllib

from anchorcheck.checks import check
from anchorcheck.config import RunConfig
from anchorcheck.context import CheckContext
from anchorcheck.failures import FailureKind
from anchorcheck.http import make_request
from anchorcheck.models import NetworkCall, Result


TOML_TESTS_GROUP = "TOML tests"


@check(
    assertion="the TOML file exists",
    sep=1,
    group=TOML_TESTS_GROUP,
    provides=["toml_obj"],
    failure_modes={
        "TOML_PARSE_ERROR": FailureKind.from_template(
            "invalid TOML",
            "The stellar.toml file could not be parsed:\n\n{error}",
        ),
    },
    success_message="A stellar.toml file was found at /.well-known/stellar.toml and parsed successfully.",
)
async def toml_exists(config: RunConfig, ctx: CheckContext) -> Result:
    result = Result()
    call = NetworkCall(request=ctx.client.build_request("GET", config.toml_url))
    text = await make_request(ctx.client, call, 200, result)
    if result.failure:
        return result
    try:
        ctx.provide("toml_obj", tomllib.loads(text))
    except tomllib.TOMLDecodeError as e:
        result.failure = ctx.failure("TOML_PARSE_ERROR", {"error": e})
    return result


@check(
    assertion="has a network passphrase",
    sep=1,
    group=TOML_TESTS_GROUP,
    dependencies=[toml_exists],
    expects=["toml_obj"],
    failure_modes={
        "NETWORK_PASSPHRASE_NOT_FOUND": FailureKind.from_template(
            "NETWORK_PASSPHRASE not found",
            "The stellar.toml file does not specify a NETWORK_PASSPHRASE",
        ),
    },
)
async def has_network_passphrase(config: RunConfig, ctx: CheckContext) -> Result:
    result = Result()
    if not ctx.expects["toml_obj"].get("NETWORK_PASSPHRASE"):
        result.failure = ctx.failure("NETWORK_PASSPHRASE_NOT_FOUND")
    return result


tests = [toml_exists, has_network_passphrase]
