from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from lambdakit.models.artifacts import ArtifactManifest
from lambdakit.models.function import FunctionSpec
from lambdakit.services.errors import RuntimeCommandError, RuntimeHookNotImplementedError
from lambdakit.services.packaging.packaging_service import PackagingService

logger = logging.getLogger(__name__)


class RuntimeBase:
    """Base class every function runtime extends.

    `scaffold`, `build` and `after_copy_dir` have working defaults. `run` and
    `install_dependencies` must be overridden; the base versions raise when called.
    """

    def __init__(self, name: str, *, project_root: Path) -> None:
        self.name = name
        self.project_root = project_root

    def get_name(self) -> str:
        return self.name

    def get_handler(self, function: FunctionSpec) -> str:
        return function.handler

    async def scaffold(self, function: FunctionSpec) -> None:
        return None

    async def run(self, function: FunctionSpec, event: Optional[dict[str, Any]] = None) -> Any:
        raise RuntimeHookNotImplementedError(f'Runtime "{self.get_name()}" should implement "run()" method')

    async def build(self, function: FunctionSpec, stage: str, region: str) -> ArtifactManifest:
        packaging = PackagingService(project_root=self.project_root)
        return await packaging.build(function, stage, region, self)

    async def install_dependencies(self, directory: Path) -> None:
        raise RuntimeHookNotImplementedError(
            f'Runtime "{self.get_name()}" should implement "install_dependencies()" method'
        )

    async def after_copy_dir(self, function: FunctionSpec, dist_dir: Path, stage: str, region: str) -> None:
        return None

    async def _exec(self, *args: str, cwd: Path) -> str:
        """Run a subprocess and return its stdout; non-zero exit raises RuntimeCommandError."""

        logger.debug("%s: running %s (cwd=%s)", self.get_name(), " ".join(args), cwd)
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise RuntimeCommandError(f"Failed to start {args[0]}: {exc}") from exc

        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            details = stderr.decode("utf-8", errors="replace").strip()
            raise RuntimeCommandError(f"{args[0]} exited with status {proc.returncode}: {details}")
        return stdout.decode("utf-8", errors="replace")

    @staticmethod
    def _write_if_missing(path: Path, contents: str) -> bool:
        if path.exists():
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding="utf-8")
        return True

    @staticmethod
    def _split_handler(function: FunctionSpec, suffixes: Sequence[str]) -> tuple[Path, str]:
        """Map `dir/file.export` to (path of the handler file in the function root, export name)."""

        filename = function.handler.replace("\\", "/").split("/")[-1]
        module, _, export = filename.rpartition(".")
        for suffix in suffixes:
            candidate = function.root_path / f"{module}{suffix}"
            if candidate.exists():
                return candidate, export
        return function.root_path / f"{module}{suffixes[0]}", export
