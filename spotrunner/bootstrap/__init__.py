"""Declarative user-data DSL.

Example:
    >>> from spotrunner.bootstrap import commands, render, shebang, cd, run
    >>>
    >>> script = render(commands(
    ...     shebang(),
    ...     cd("/home/runner"),
    ...     run("ubuntu"),
    ... ))
"""

from __future__ import annotations

from .compose import Op, commands, render, resolve
from .ops import (
    capture_output,
    cd,
    chown,
    detect_arch,
    download_runner,
    env_export,
    file,
    heredoc_delimiter,
    mkcd,
    register,
    run,
    service,
    shebang,
    source,
)
from .runner import user_data

__all__ = [
    # Core types
    "Op",
    "commands",
    "render",
    "resolve",
    # Operations
    "capture_output",
    "cd",
    "chown",
    "detect_arch",
    "download_runner",
    "env_export",
    "file",
    "heredoc_delimiter",
    "mkcd",
    "register",
    "run",
    "service",
    "shebang",
    "source",
    # Runner script
    "user_data",
]
