from __future__ import annotations

import asyncio
import logging
import os
import shutil
import time
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Callable

from lambdakit.models.artifacts import ArtifactManifest
from lambdakit.models.function import FunctionSpec
from lambdakit.services.errors import FilesystemError, InvalidHandlerError
from lambdakit.services.packaging.artifact_collector import collect_artifacts
from lambdakit.services.packaging.rule_matcher import RuleMatcher

if TYPE_CHECKING:
    from lambdakit.runtimes.base import RuntimeBase

logger = logging.getLogger(__name__)

DIST_ROOT_PARTS = ("_meta", "_tmp")


def resolve_package_root(function: FunctionSpec) -> Path:
    """Derive the package root from the function's handler.

    The handler's directory part has to be the tail of the function's root path:
    a function in `<root>/users/show` with handler `users/show/handler.handler`
    is packaged from `<root>`.
    """

    handler = function.handler.replace("\\", "/").strip()
    handler_path = PurePosixPath(handler)
    if not handler or handler_path.is_absolute() or ".." in handler_path.parts:
        raise InvalidHandlerError(f"This function's handler is invalid: {function.handler!r}")

    handler_full = (function.root_path / handler_path.name).as_posix()
    if not handler_full.endswith("/" + handler):
        raise InvalidHandlerError(
            f"This function's handler is invalid and not in the file system: {function.handler}"
        )

    package_root = Path(handler_full[: -len(handler)])
    if not package_root.is_dir():
        raise InvalidHandlerError(f"Package root for handler {function.handler} does not exist: {package_root}")
    return package_root


class PackagingService:
    """Copies a function into an isolated dist dir and builds its artifact manifest."""

    def __init__(self, *, project_root: Path) -> None:
        self._project_root = project_root

    def dist_dir_for(self, function: FunctionSpec) -> Path:
        stamp = int(time.time() * 1000)
        return self._project_root.joinpath(*DIST_ROOT_PARTS, f"{function.name}@{stamp}")

    def _ignore_for(self, matcher: RuleMatcher, package_root: Path) -> Callable[[str, list[str]], set[str]]:
        # The dist area may sit inside the package root; never copy it into itself.
        meta_dir = os.path.realpath(self._project_root.joinpath(DIST_ROOT_PARTS[0]))

        def _ignore(directory: str, names: list[str]) -> set[str]:
            ignored = set()
            for name in names:
                full = os.path.join(directory, name)
                if os.path.realpath(full) == meta_dir:
                    ignored.add(name)
                    continue
                rel_path = os.path.relpath(full, package_root)
                if matcher.matches(rel_path, is_dir=os.path.isdir(full)):
                    ignored.add(name)
            return ignored

        return _ignore

    def _copy_function(self, function: FunctionSpec, package_root: Path, dist_dir: Path, label: str) -> None:
        matcher = RuleMatcher(function.exclude_patterns, label=label)
        logger.debug("%sCopying in dist dir %s", label, dist_dir)
        try:
            dist_dir.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(package_root, dist_dir, ignore=self._ignore_for(matcher, package_root), symlinks=True)
        except OSError as exc:
            logger.exception("Copying function %s failed", function.name)
            raise FilesystemError(f"Failed to copy {package_root} into {dist_dir}") from exc

    async def build(self, function: FunctionSpec, stage: str, region: str, runtime: "RuntimeBase") -> ArtifactManifest:
        """Package `function` for `stage`/`region` and return its artifact manifest."""

        label = f'"{stage} - {region} - {function.name}": '
        dist_dir = self.dist_dir_for(function)
        package_root = resolve_package_root(function)

        await asyncio.to_thread(self._copy_function, function, package_root, dist_dir, label)
        await runtime.after_copy_dir(function, dist_dir, stage, region)

        manifest = await asyncio.to_thread(
            collect_artifacts,
            dist_dir,
            function.include_paths,
            RuleMatcher(function.exclude_patterns, label=label),
        )
        manifest.dist_dir = dist_dir
        logger.info("%sPackaged %d file(s) from %s", label, len(manifest), dist_dir)
        return manifest
