"""Decorator for registering conformance checks as test definitions."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping

from anchorcheck.failures import FailureKind, merge_catalog
from anchorcheck.models.definition import Check, ContextContract, TestDefinition


def check(
    *,
    assertion: str,
    sep: int,
    group: str,
    dependencies: Iterable[TestDefinition] = (),
    expects: Iterable[str] = (),
    provides: Iterable[str] = (),
    failure_modes: Mapping[str, FailureKind] | None = None,
    success_message: str | None = None,
) -> Callable[[Check], TestDefinition]:
    """Turn a check coroutine into a `TestDefinition`.

    The generic failure catalog is merged under ``failure_modes``.

    Example:
        @check(
            assertion="has a valid transfer server URL",
            sep=24,
            group="TOML tests",
            dependencies=[toml_exists],
            expects=["toml_obj"],
            provides=["transfer_server_url"],
            failure_modes={"NO_HTTPS": FailureKind.from_template("no https", "...")},
        )
        async def has_transfer_server_url(config, ctx):
            ...
    """

    def decorator(fn: Check) -> TestDefinition:
        return TestDefinition(
            assertion=assertion,
            sep=sep,
            group=group,
            check=fn,
            dependencies=tuple(dependencies),
            context=ContextContract(expects=tuple(expects), provides=tuple(provides)),
            failure_modes=merge_catalog(failure_modes),
            success_message=success_message,
        )

    return decorator
