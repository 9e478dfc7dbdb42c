"""SEP-24: hosted deposit and withdrawal."""

from stellar_sdk import Keypair

from anchorcheck.checks import check
from anchorcheck.config import RunConfig
from anchorcheck.context import CheckContext
from anchorcheck.failures import FailureKind
from anchorcheck.http import make_request
from anchorcheck.models import NetworkCall, Result
from anchorcheck.suites.schemas import SEP24_INFO_SCHEMA, schema_errors
from anchorcheck.suites.sep1 import toml_exists


TOML_TESTS_GROUP = "TOML tests"
INFO_TESTS_GROUP = "/info tests"
DEPOSIT_TESTS_GROUP = "/deposit tests"

DEPOSIT_ENDPOINT = "/transactions/deposit/interactive"


@check(
    assertion="has a valid transfer server URL",
    sep=24,
    group=TOML_TESTS_GROUP,
    dependencies=[toml_exists],
    expects=["toml_obj"],
    provides=["transfer_server_url"],
    failure_modes={
        "TRANSFER_SERVER_NOT_FOUND": FailureKind.from_template(
            "TRANSFER_SERVER_SEP0024 not found",
            "The stellar.toml file does not have a valid TRANSFER_SERVER_SEP0024 URL",
        ),
        "NO_HTTPS": FailureKind.from_template("no https", "The transfer server URL must use HTTPS"),
        "ENDS_WITH_SLASH": FailureKind.from_template("ends with slash", "The transfer server URL cannot end with a '/'"),
    },
    success_message="The stellar.toml file has a TRANSFER_SERVER_SEP0024 URL using HTTPS.",
)
async def has_transfer_server_url(config: RunConfig, ctx: CheckContext) -> Result:
    result = Result()
    toml_obj = ctx.expects["toml_obj"]
    url = toml_obj.get("TRANSFER_SERVER_SEP0024") or toml_obj.get("TRANSFER_SERVER")
    ctx.provide("transfer_server_url", url)
    if not url:
        result.failure = ctx.failure("TRANSFER_SERVER_NOT_FOUND")
    elif not url.startswith("https"):
        result.failure = ctx.failure("NO_HTTPS", expected="https://...", actual=url)
    elif url.endswith("/"):
        result.failure = ctx.failure("ENDS_WITH_SLASH", actual=url)
    return result


@check(
    assertion="response is compliant with the schema",
    sep=24,
    group=INFO_TESTS_GROUP,
    dependencies=[toml_exists, has_transfer_server_url],
    expects=["transfer_server_url"],
    provides=["info_obj"],
    failure_modes={
        "INVALID_SCHEMA": FailureKind.from_template(
            "invalid schema",
            "The response body returned does not comply with the schema defined for the /info endpoint:\n\n"
            "https://github.com/stellar/stellar-protocol/blob/master/ecosystem/sep-0024.md#info\n\n"
            "The errors returned from the schema validation:\n\n{errors}",
        ),
    },
    success_message="The /info response complies with the SEP-24 schema.",
)
async def info_is_compliant_with_schema(config: RunConfig, ctx: CheckContext) -> Result:
    result = Result()
    call = NetworkCall(request=ctx.client.build_request("GET", ctx.expects["transfer_server_url"] + "/info"))
    info_obj = await make_request(ctx.client, call, 200, result, "application/json")
    if result.failure:
        return result
    ctx.provide("info_obj", info_obj)
    errors = schema_errors(info_obj, SEP24_INFO_SCHEMA)
    if errors:
        result.failure = ctx.failure("INVALID_SCHEMA", {"errors": "\n".join(errors)})
    return result


@check(
    assertion="contains configured asset code",
    sep=24,
    group=INFO_TESTS_GROUP,
    dependencies=[toml_exists, info_is_compliant_with_schema],
    expects=["info_obj"],
    failure_modes={
        "CONFIGURED_ASSET_CODE_NOT_FOUND": FailureKind.from_template(
            "configured asset code not found",
            "{asset_code} is not present in the /info response",
        ),
        "CONFIGURED_ASSET_CODE_NOT_ENABLED": FailureKind.from_template(
            "configured asset code not enabled",
            "{asset_code} is not enabled for SEP-24",
        ),
        "NO_ASSET_CODES": FailureKind.from_template(
            "no enabled assets",
            "There are no enabled assets in the /info response",
        ),
    },
)
async def contains_configured_asset_code(config: RunConfig, ctx: CheckContext) -> Result:
    result = Result()
    deposit_assets = ctx.expects["info_obj"]["deposit"]
    if config.asset_code is None:
        enabled = [code for code, asset in deposit_assets.items() if asset.get("enabled")]
        if not enabled:
            result.failure = ctx.failure("NO_ASSET_CODES")
            return result
        config.discover_asset_code(enabled[0])
        return result

    asset = deposit_assets.get(config.asset_code)
    if asset is None:
        result.failure = ctx.failure("CONFIGURED_ASSET_CODE_NOT_FOUND", {"asset_code": config.asset_code})
    elif not asset.get("enabled"):
        result.failure = ctx.failure("CONFIGURED_ASSET_CODE_NOT_ENABLED", {"asset_code": config.asset_code})
    return result


@check(
    assertion="requires a SEP-10 JWT",
    sep=24,
    group=DEPOSIT_TESTS_GROUP,
    dependencies=[has_transfer_server_url, contains_configured_asset_code],
    expects=["transfer_server_url"],
    success_message="An interactive deposit request without a JWT is rejected with 403.",
)
async def deposit_requires_token(config: RunConfig, ctx: CheckContext) -> Result:
    result = Result()
    call = NetworkCall(
        request=ctx.client.build_request(
            "POST",
            ctx.expects["transfer_server_url"] + DEPOSIT_ENDPOINT,
            json={"account": Keypair.random().public_key, "asset_code": config.asset_code},
        )
    )
    await make_request(ctx.client, call, 403, result)
    return result


tests = [
    has_transfer_server_url,
    info_is_compliant_with_schema,
    contains_configured_asset_code,
    deposit_requires_token,
]
