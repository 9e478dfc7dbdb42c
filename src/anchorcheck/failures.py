"""Failure catalog primitives and the generic failure modes shared by every test."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from anchorcheck.models.result import Failure


@dataclass(frozen=True)
class FailureKind:
    """A named category of verification failure.

    Attributes
    ----------
    name
        Short human-readable name shown as the failure type.
    text
        Renders the failure description from the arguments supplied by the check.
    """

    name: str
    text: Callable[[Mapping[str, Any]], str]

    @classmethod
    def from_template(cls, name: str, template: str) -> FailureKind:
        """Build a kind whose description is a `str.format` template over its arguments."""
        return cls(name=name, text=lambda args: template.format(**args))

    def render(self, args: Mapping[str, Any] | None = None) -> str:
        return self.text(dict(args or {}))


def make_failure(
    mode: str,
    kind: FailureKind,
    args: Mapping[str, Any] | None = None,
    *,
    expected: Any = None,
    actual: Any = None,
) -> Failure:
    """Render `kind` into a `Failure` value."""
    return Failure(
        mode=mode,
        name=kind.name,
        message=kind.render(args),
        expected=expected,
        actual=actual,
    )


CONNECTION_ERROR = "CONNECTION_ERROR"
UNEXPECTED_STATUS_CODE = "UNEXPECTED_STATUS_CODE"
UNEXPECTED_CONTENT_TYPE = "UNEXPECTED_CONTENT_TYPE"
INVALID_JSON = "INVALID_JSON"
SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

GENERIC_FAILURES: dict[str, FailureKind] = {
    CONNECTION_ERROR: FailureKind.from_template(
        "connection error",
        "A connection failure occured when making a request to:\n\n{url}\n\n{error}",
    ),
    UNEXPECTED_STATUS_CODE: FailureKind.from_template(
        "unexpected status code",
        "A {expected} status code was expected for {method} {url}, received {actual}",
    ),
    UNEXPECTED_CONTENT_TYPE: FailureKind.from_template(
        "unexpected content type",
        "A content type of '{expected}' was expected for {method} {url}, received '{actual}'",
    ),
    INVALID_JSON: FailureKind.from_template(
        "invalid JSON",
        "The response body from {method} {url} could not be parsed as JSON: {error}",
    ),
    SCHEMA_MISMATCH: FailureKind.from_template(
        "schema mismatch",
        "The response body does not comply with the expected schema.\n\n"
        "The errors returned from the schema validation:\n\n{errors}",
    ),
    UNEXPECTED_ERROR: FailureKind.from_template(
        "unexpected error",
        "An unexpected error occurred while running the test:\n\n{error}",
    ),
}


def merge_catalog(failure_modes: Mapping[str, FailureKind] | None) -> dict[str, FailureKind]:
    """Merge a test's own failure modes over the generic catalog."""
    return {**GENERIC_FAILURES, **(failure_modes or {})}
