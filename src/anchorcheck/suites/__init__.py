"""Registered conformance suites, keyed by SEP number."""

from anchorcheck.errors import UnknownSuiteError
from anchorcheck.models.definition import TestDefinition
from anchorcheck.suites import sep1, sep24


SUITES: dict[int, list[TestDefinition]] = {
    1: sep1.tests,
    24: sep24.tests,
}


def suite_name(sep: int) -> str:
    return f"SEP-{sep}"


def get_suite(sep: int) -> list[TestDefinition]:
    """Return the test list registered for ``sep``."""
    try:
        return SUITES[sep]
    except KeyError:
        available = ", ".join(str(s) for s in sorted(SUITES))
        raise UnknownSuiteError(f"No suite registered for SEP-{sep} (available: {available})") from None


def select_suites(seps: list[int]) -> dict[str, list[TestDefinition]]:
    """Map display names to test lists for ``seps``, in the order given."""
    return {suite_name(sep): get_suite(sep) for sep in dict.fromkeys(seps)}
