"""Function runtimes.

One plugin class per execution environment. Look plugins up by the runtime name
declared in a function's definition:

    from lambdakit.runtimes import get_runtime
"""

from __future__ import annotations

from pathlib import Path

from lambdakit.runtimes.base import RuntimeBase
from lambdakit.runtimes.nodejs import NodeJsRuntime
from lambdakit.runtimes.python import PythonRuntime
from lambdakit.services.errors import UnknownRuntimeError

RUNTIMES: dict[str, type[RuntimeBase]] = {
    "nodejs": NodeJsRuntime,
    "python": PythonRuntime,
}


def get_runtime(name: str, *, project_root: Path) -> RuntimeBase:
    """Return a fresh plugin for `name`; versioned names like `python3.12` match by prefix."""

    normalized = (name or "").strip().lower()
    for prefix, runtime_cls in RUNTIMES.items():
        if normalized.startswith(prefix):
            return runtime_cls(project_root=project_root, name=normalized)
    raise UnknownRuntimeError(f"Unsupported runtime {name!r}; expected one of: {', '.join(RUNTIMES)}")


__all__ = ["RUNTIMES", "NodeJsRuntime", "PythonRuntime", "RuntimeBase", "get_runtime"]
