from __future__ import annotations

import subprocess
from collections.abc import Iterable
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from procguard.platforms.base import BaseOSAdapter


class CommandLine(BaseModel):
    """An executable plus its ordered argument list."""

    executable: str = Field(..., description="Program to run")
    arguments: list[str] = Field(default_factory=list)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("executable")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("executable must not be empty")
        return value

    @classmethod
    def parse(cls, text: str, adapter: BaseOSAdapter | None = None) -> CommandLine:
        """Split a command string with the platform's quoting rules."""
        if adapter is None:
            from procguard.platforms import get_os_adapter

            adapter = get_os_adapter()
        argv = adapter.shlex_split(text)
        if not argv:
            raise ValueError("Command line is empty")
        return cls(executable=argv[0], arguments=argv[1:])

    def add_argument(self, argument: str) -> CommandLine:
        self.arguments.append(str(argument))
        return self

    def add_arguments(self, arguments: Iterable[str]) -> CommandLine:
        self.arguments.extend(str(a) for a in arguments)
        return self

    def to_argv(self) -> list[str]:
        return [self.executable, *self.arguments]

    def __str__(self) -> str:
        return subprocess.list2cmdline(self.to_argv())
