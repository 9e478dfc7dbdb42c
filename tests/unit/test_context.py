"""Tests for anchorcheck.context module."""

from types import MappingProxyType
from uuid import uuid4

import httpx
import pytest

from anchorcheck.checks import check
from anchorcheck.context import CheckContext, ContextStore
from anchorcheck.errors import InternalInvariantError, UndeclaredSlotError, UnknownFailureModeError
from anchorcheck.failures import CONNECTION_ERROR, FailureKind
from anchorcheck.models import Result


@check(
    assertion="provides url",
    sep=99,
    group="g",
    provides=["url"],
    failure_modes={"NO_HTTPS": FailureKind.from_template("no https", "{url} does not use HTTPS")},
)
async def provider(config, ctx):
    return Result()


@check(assertion="other", sep=99, group="g")
async def other(config, ctx):
    return Result()


def make_context(definition=provider) -> CheckContext:
    return CheckContext(
        definition=definition,
        expects=MappingProxyType({}),
        client=httpx.AsyncClient(),
        run_id=uuid4(),
    )


class TestContextStore:
    """Tests for ContextStore."""

    def test_record_and_lookup(self):
        store = ContextStore(uuid4())
        store.record(provider, {"url": "https://x"})
        assert store.has(provider, "url")
        assert store.lookup(provider, "url") == "https://x"

    def test_lookup_missing_slot(self):
        store = ContextStore(uuid4())
        store.record(provider, {})
        with pytest.raises(InternalInvariantError, match="url"):
            store.lookup(provider, "url")

    def test_lookup_unrecorded_definition(self):
        store = ContextStore(uuid4())
        with pytest.raises(InternalInvariantError):
            store.lookup(other, "url")

    def test_stores_are_independent(self):
        first, second = ContextStore(uuid4()), ContextStore(uuid4())
        first.record(provider, {"url": "https://first"})
        assert not second.has(provider, "url")

    def test_values_for_is_read_only(self):
        store = ContextStore(uuid4())
        store.record(provider, {"url": "https://x"})
        values = store.values_for(provider)
        with pytest.raises(TypeError):
            values["url"] = "changed"  # type: ignore[index]

    def test_record_copies_values(self):
        store = ContextStore(uuid4())
        values = {"url": "https://x"}
        store.record(provider, values)
        values["url"] = "changed"
        assert store.lookup(provider, "url") == "https://x"


class TestCheckContext:
    """Tests for CheckContext."""

    def test_provide_declared_slot(self):
        ctx = make_context()
        ctx.provide("url", "https://x")
        assert ctx.provides == {"url": "https://x"}

    def test_provide_undeclared_slot(self):
        ctx = make_context(other)
        with pytest.raises(UndeclaredSlotError):
            ctx.provide("url", "https://x")

    def test_failure_from_own_catalog(self):
        failure = make_context().failure("NO_HTTPS", {"url": "http://x"}, expected="https://...", actual="http://x")
        assert failure.mode == "NO_HTTPS"
        assert failure.name == "no https"
        assert failure.message == "http://x does not use HTTPS"
        assert failure.expected == "https://..."

    def test_failure_from_generic_catalog(self):
        failure = make_context(other).failure(CONNECTION_ERROR, {"url": "https://x", "error": "refused"})
        assert failure.name == "connection error"
        assert "refused" in failure.message

    def test_unknown_failure_mode(self):
        with pytest.raises(UnknownFailureModeError):
            make_context(other).failure("NO_HTTPS")
