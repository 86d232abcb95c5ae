from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from lambdakit.models.function import FunctionSpec
from lambdakit.runtimes.base import RuntimeBase
from lambdakit.services.errors import RuntimeCommandError

logger = logging.getLogger(__name__)

VENDOR_DIR = "_vendor"

_HANDLER_TEMPLATE = '''import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "{vendor}"))


def handler(event, context):
    return {{"message": "Your function executed successfully!"}}
'''

_INVOKE_SCRIPT = """
import importlib.util, json, os, sys
path, export, event = sys.argv[1], sys.argv[2], json.loads(sys.argv[3])
sys.path.insert(0, os.path.dirname(path))
spec = importlib.util.spec_from_file_location("lambdakit_handler", path)
module = importlib.util.module_from_spec(spec)
spec.loader.exec_module(module)
sys.stdout.write(json.dumps(getattr(module, export)(event, None)))
"""


class PythonRuntime(RuntimeBase):
    """Python functions; third-party requirements are vendored into `_vendor/`."""

    def __init__(self, *, project_root: Path, name: str = "python") -> None:
        super().__init__(name, project_root=project_root)

    async def scaffold(self, function: FunctionSpec) -> None:
        self._write_if_missing(function.root_path / "handler.py", _HANDLER_TEMPLATE.format(vendor=VENDOR_DIR))
        self._write_if_missing(function.root_path / "event.json", "{}\n")
        self._write_if_missing(function.root_path / "requirements.txt", "")

    async def install_dependencies(self, directory: Path) -> None:
        requirements = directory / "requirements.txt"
        if not requirements.exists() or not requirements.read_text(encoding="utf-8").strip():
            logger.debug("No requirements in %s; nothing to install", directory)
            return
        await self._exec(
            sys.executable, "-m", "pip", "install", "-r", str(requirements), "-t", str(directory / VENDOR_DIR),
            cwd=directory,
        )

    async def after_copy_dir(self, function: FunctionSpec, dist_dir: Path, stage: str, region: str) -> None:
        for requirements in sorted(dist_dir.rglob("requirements.txt")):
            await self.install_dependencies(requirements.parent)

    async def run(self, function: FunctionSpec, event: Optional[dict[str, Any]] = None) -> Any:
        handler_file, export = self._split_handler(function, (".py",))
        if event is None:
            event_file = function.root_path / "event.json"
            event = json.loads(event_file.read_text(encoding="utf-8")) if event_file.exists() else {}

        output = await self._exec(
            sys.executable, "-c", _INVOKE_SCRIPT, str(handler_file), export, json.dumps(event),
            cwd=function.root_path,
        )
        try:
            return json.loads(output) if output.strip() else None
        except json.JSONDecodeError as exc:
            raise RuntimeCommandError(f"Function {function.name} returned non-JSON output") from exc
