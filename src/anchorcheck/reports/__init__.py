from .base import Reporter
from .console import ConsoleReporter
from .json import JsonReporter


__all__ = ["ConsoleReporter", "JsonReporter", "Reporter"]
