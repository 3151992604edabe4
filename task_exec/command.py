"""Resolution of request command payloads into container argument vectors."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

SHELL = ("sh", "-c")


@dataclass(frozen=True)
class RawShellCommand:
    line: str


@dataclass(frozen=True)
class ArgumentVector:
    args: tuple[str, ...]


Command = Union[RawShellCommand, ArgumentVector]


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, bool):
        return json.dumps(value)
    return str(value)


def parse_command(value: Any) -> Command:
    """Resolve a raw ``command`` payload into its tagged form.

    Lists and tuples are argument vectors; anything else is treated as a
    single opaque shell line.
    """
    if isinstance(value, (RawShellCommand, ArgumentVector)):
        return value
    if isinstance(value, (list, tuple)):
        return ArgumentVector(tuple(_stringify(item) for item in value))
    return RawShellCommand(_stringify(value))


def normalize(command: Any) -> list[str]:
    """Return the canonical argument vector for ``command``.

    >>> normalize("echo hi")
    ['sh', '-c', 'echo hi']
    >>> normalize(["echo", 1])
    ['echo', '1']
    """
    parsed = parse_command(command)
    if isinstance(parsed, ArgumentVector):
        return list(parsed.args)
    return [*SHELL, parsed.line]
