"""Bootstrap script composition.

Core types and composition functions for the user-data DSL.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

# =============================================================================
# Core Types
# =============================================================================

Op: TypeAlias = "str | Callable[[], str] | list[Op] | None"
"""Operation type: a literal command, a function returning one, or a list of ops."""


def resolve(op: Op) -> str:
    """Resolve an operation to its string representation."""
    match op:
        case str(op):
            return op
        case list(op):
            return "\n".join(map(lambda o: resolve(o), op))
        case None:
            return ""
        case _:
            return op()


def commands(*ops: Op) -> list[str]:
    """Flatten operations into an ordered list of shell commands.

    Lists are expanded in place so each command keeps its own entry;
    ``None`` and empty commands are dropped.
    """
    result: list[str] = []
    for op in ops:
        match op:
            case list(nested):
                result.extend(commands(*nested))
            case _:
                resolved = resolve(op)
                if resolved:
                    result.append(resolved)
    return result


def render(cmds: list[str]) -> str:
    """Join commands into a complete script."""
    return "\n".join(cmds)
