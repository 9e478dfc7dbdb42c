from .definition import Check, ContextContract, TestDefinition
from .result import Failure, NetworkCall, Result, TestRun, TestStatus


__all__ = [
    "Check",
    "ContextContract",
    "Failure",
    "NetworkCall",
    "Result",
    "TestDefinition",
    "TestRun",
    "TestStatus",
]
