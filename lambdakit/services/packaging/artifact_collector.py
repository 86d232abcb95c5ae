from __future__ import annotations

import logging
import os
import posixpath
import zipfile
from pathlib import Path
from typing import Optional, Sequence

from lambdakit.models.artifacts import ArtifactManifest
from lambdakit.services.errors import FilesystemError, IncludePathNotFoundError
from lambdakit.services.packaging.rule_matcher import RuleMatcher

logger = logging.getLogger(__name__)

# Compared against the lowercased file name.
IGNORED_FILENAMES = frozenset({".ds_store", "thumbs.db", "desktop.ini"})


def _is_ignored(filename: str) -> bool:
    return filename.lower() in IGNORED_FILENAMES


def _walk_files(directory: Path) -> list[Path]:
    """Files under `directory`: a directory's own files first, then its subdirectories."""

    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        base = Path(dirpath)
        for filename in filenames:
            if _is_ignored(filename):
                continue
            path = base / filename
            if path.is_file():
                found.append(path)
    return found


def collect_artifacts(
    root: Path,
    include_paths: Optional[Sequence[str]] = None,
    rule_matcher: Optional[RuleMatcher] = None,
) -> ArtifactManifest:
    """Build the ordered artifact manifest for a packaged function.

    Each include path is resolved against `root`. A file becomes one entry named by
    the include path itself; a directory contributes every surviving descendant file
    as `<directory basename>/<relative path>`.
    """

    matcher = rule_matcher if rule_matcher is not None else RuleMatcher()
    resolved_root = root.resolve()
    manifest = ArtifactManifest()

    for include in include_paths or ["."]:
        full_path = (root / include).resolve()
        if not os.path.lexists(full_path):
            raise IncludePathNotFoundError(f"Can't find include path: {include} (looked in {root})")

        if full_path.is_file():
            manifest.add(archive_name=posixpath.normpath(include.replace(os.sep, "/")), source_path=full_path)
            continue

        if not full_path.is_dir():
            continue

        dirname = os.path.basename(os.path.normpath(include))
        for path in _walk_files(full_path):
            if matcher.matches(os.path.relpath(path, resolved_root)):
                continue
            rel_file = path.relative_to(full_path).as_posix()
            manifest.add(archive_name=posixpath.normpath(f"{dirname}/{rel_file}"), source_path=path)

    logger.debug("Collected %d artifact(s) from %s", len(manifest), root)
    return manifest


def write_archive(manifest: ArtifactManifest, destination: Path) -> Path:
    """Write the manifest's files into a zip archive at `destination`."""

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for entry in manifest.entries:
                archive.write(entry.source_path, arcname=entry.archive_name)
    except OSError as exc:
        logger.exception("Writing archive failed")
        raise FilesystemError(f"Failed to write archive: {destination}") from exc
    return destination
