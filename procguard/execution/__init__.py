"""Process execution helpers: command-line model and output capture.

The launcher lives in ``procguard.execution.launcher``; it depends on the
platform adapters, which in turn build ``CommandLine`` objects.
"""

from .command_line import CommandLine
from .runner import CapturedOutput, ProcessRunner, SubprocessRunner

__all__ = ["CapturedOutput", "CommandLine", "ProcessRunner", "SubprocessRunner"]
