from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, PrivateAttr

from lambdakit.services.errors import DuplicateArtifactError


class ArtifactEntry(BaseModel):
    archive_name: str
    source_path: Path


class ArtifactManifest(BaseModel):
    """Ordered list of files making up one function's deployable package."""

    entries: list[ArtifactEntry] = []
    dist_dir: Optional[Path] = None
    _names: set[str] = PrivateAttr(default_factory=set)

    def model_post_init(self, __context: object) -> None:
        names: set[str] = set()
        for entry in self.entries:
            if entry.archive_name in names:
                raise DuplicateArtifactError(f"Duplicate archive entry: {entry.archive_name}")
            names.add(entry.archive_name)
        self._names = names

    def add(self, *, archive_name: str, source_path: Path) -> ArtifactEntry:
        if archive_name in self._names:
            raise DuplicateArtifactError(
                f"Duplicate archive entry: {archive_name} (from {source_path})"
            )
        entry = ArtifactEntry(archive_name=archive_name, source_path=source_path)
        self.entries.append(entry)
        self._names.add(archive_name)
        return entry

    @property
    def archive_names(self) -> list[str]:
        return [e.archive_name for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
