"""anchorcheck - conformance checks for Stellar anchor services."""

from .checks import check
from .config import RunConfig
from .context import CheckContext, ContextStore
from .errors import AnchorCheckError, ConfigurationError, CyclicDependencyError, UnresolvedSlotError
from .failures import GENERIC_FAILURES, FailureKind
from .graph import ExecutionPlan, build_plan
from .http import HttpSettings, make_request
from .models import ContextContract, Failure, NetworkCall, Result, TestDefinition, TestRun, TestStatus
from .runner import Runner, RunResult, SuiteRun
from .stats import GroupStats, Stats, compute_stats
from .version import __version__


__all__ = [
    # Definitions
    "check",
    "CheckContext",
    "ContextContract",
    "FailureKind",
    "GENERIC_FAILURES",
    "TestDefinition",
    # Engine
    "ContextStore",
    "ExecutionPlan",
    "build_plan",
    "Runner",
    "RunConfig",
    "RunResult",
    "SuiteRun",
    # Results
    "Failure",
    "NetworkCall",
    "Result",
    "TestRun",
    "TestStatus",
    "GroupStats",
    "Stats",
    "compute_stats",
    # HTTP
    "HttpSettings",
    "make_request",
    # Errors
    "AnchorCheckError",
    "ConfigurationError",
    "CyclicDependencyError",
    "UnresolvedSlotError",
]
