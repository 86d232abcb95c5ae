from __future__ import annotations

import logging
import os
import re
from pathlib import Path, PurePath
from typing import Optional, Sequence, Union

logger = logging.getLogger(__name__)


class RuleMatcher:
    """Decides which paths are excluded from a function package.

    Patterns are regular expressions searched (not fully matched) against the
    candidate path relative to `root`, using `/` separators and no leading slash.
    Anchor with `^` to match from the package root.
    """

    def __init__(self, patterns: Sequence[str] = (), *, root: Optional[Path] = None, label: str = "") -> None:
        self._patterns: tuple[re.Pattern[str], ...] = tuple(re.compile(p) for p in patterns)
        self._root = root
        self._label = label

    @property
    def patterns(self) -> tuple[str, ...]:
        return tuple(p.pattern for p in self._patterns)

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def relative(self, candidate: Union[str, PurePath]) -> str:
        path = str(candidate)
        if self._root is not None and os.path.isabs(path):
            try:
                path = os.path.relpath(path, self._root)
            except ValueError:
                pass
        path = path.replace(os.sep, "/")
        return path[1:] if path.startswith("/") else path

    def matching_pattern(self, candidate: Union[str, PurePath], *, is_dir: bool = False) -> Optional[str]:
        if not self._patterns:
            return None

        rel_path = self.relative(candidate)
        forms = (rel_path, rel_path.rstrip("/") + "/") if is_dir else (rel_path,)
        for pattern in self._patterns:
            if any(pattern.search(form) for form in forms):
                logger.debug("%sExcluding %s (pattern=%s)", self._label, rel_path, pattern.pattern)
                return pattern.pattern
        return None

    def matches(self, candidate: Union[str, PurePath], *, is_dir: bool = False) -> bool:
        return self.matching_pattern(candidate, is_dir=is_dir) is not None
