"""Reporter modules for outputting probe results."""

from .base import Reporter
from .console import ConsoleReporter
from .json_reporter import JsonReporter

__all__ = ["Reporter", "ConsoleReporter", "JsonReporter"]
