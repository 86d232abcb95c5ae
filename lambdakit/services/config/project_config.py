from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from lambdakit.models.manifest import MANIFEST_FILENAME, ProjectManifest
from lambdakit.services.config.settings import RESERVED_STAGE, SUPPORTED_REGIONS
from lambdakit.services.errors import (
    InvalidInputError,
    InvalidProjectNameError,
    MissingCredentialsError,
    ReservedStageError,
    UnsupportedRegionError,
)

logger = logging.getLogger(__name__)

MAX_PROJECT_NAME_LENGTH = 20
DEFAULT_PROFILE_NAME = "default"

_STRIP_CHARS_RE = re.compile(r"[^a-zA-Z\-\d\s:]")
_WHITESPACE_RE = re.compile(r"\s")
_VALID_NAME_RE = re.compile(r"^[a-zA-Z0-9-]+$")


@dataclass
class ProjectAnswers:
    """Raw answers gathered from CLI options and prompts, before validation."""

    name: str = ""
    stage: str = ""
    bucket: str = ""
    region: str = ""
    notification_email: str = ""
    credential_profile: Optional[str] = None
    admin_key_id: Optional[str] = None
    admin_secret_key: Optional[str] = None


def normalize_project_name(raw: str) -> str:
    name = raw.lower().strip()
    name = _STRIP_CHARS_RE.sub("", name)
    name = _WHITESPACE_RE.sub("-", name)
    return name[:MAX_PROJECT_NAME_LENGTH]


def is_existing_project(name: str, base_dir: Path) -> bool:
    """True when `<base_dir>/<name>` already holds the manifest of a project called `name`."""

    path = base_dir / name / MANIFEST_FILENAME
    if not path.is_file():
        return False
    try:
        return ProjectManifest.load(path).name == name
    except (OSError, ValueError):
        logger.warning("Ignoring unreadable project manifest %s", path, exc_info=True)
        return False


def unique_project_name(name: str, base_dir: Path) -> str:
    if not (base_dir / name).exists():
        return name
    while True:
        candidate = f"{name}-{uuid.uuid4().hex[:8]}"
        if not (base_dir / candidate).exists():
            return candidate


@dataclass(frozen=True)
class ProjectConfig:
    name: str
    stage: str
    region: str
    bucket: str
    notification_email: str
    credential_profile: str
    base_dir: Path
    # The project directory and manifest already exist; this run adds a stage.
    adds_stage: bool = False

    @property
    def root_path(self) -> Path:
        return self.base_dir / self.name

    @staticmethod
    def from_answers(answers: ProjectAnswers, *, base_dir: Path) -> "ProjectConfig":
        """Validate and normalize prompt answers.

        Raises an `InvalidInputError` subclass or `MissingCredentialsError` before
        anything is written anywhere. When no profile was chosen the config refers to
        the `default` profile, which the caller creates from the admin keys.
        """

        stage = (answers.stage or "").strip()
        if not stage:
            raise InvalidInputError("A stage name is required")
        if stage.lower() == RESERVED_STAGE:
            raise ReservedStageError(f"Stage {stage} is reserved")

        name = normalize_project_name(answers.name or "")
        if not _VALID_NAME_RE.match(name):
            raise InvalidProjectNameError("Project names can only be alphanumeric and -")

        region = (answers.region or "").strip()
        if region not in SUPPORTED_REGIONS:
            raise UnsupportedRegionError(
                f"Unsupported region {region!r}; expected one of: {', '.join(SUPPORTED_REGIONS)}"
            )

        if answers.credential_profile:
            profile = answers.credential_profile
        else:
            if not answers.admin_key_id:
                raise MissingCredentialsError("An AWS Access Key ID is required")
            if not answers.admin_secret_key:
                raise MissingCredentialsError("An AWS Secret Key is required")
            profile = DEFAULT_PROFILE_NAME

        adds_stage = is_existing_project(name, base_dir)
        return ProjectConfig(
            name=name if adds_stage else unique_project_name(name, base_dir),
            stage=stage,
            region=region,
            bucket=(answers.bucket or "").strip(),
            notification_email=(answers.notification_email or "").strip(),
            credential_profile=profile,
            base_dir=base_dir,
            adds_stage=adds_stage,
        )
