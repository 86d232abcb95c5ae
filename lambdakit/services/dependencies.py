from __future__ import annotations

from pathlib import Path
from typing import Optional

from lambdakit.runtimes import RuntimeBase, get_runtime
from lambdakit.services.config import ToolSettings
from lambdakit.services.credentials_service import CredentialStore
from lambdakit.services.setup.project_setup_service import ProjectSetupService
from lambdakit.services.setup.prompts import ClickPrompter, Prompter


def get_settings() -> ToolSettings:
    return ToolSettings.from_env()


def get_credential_store(settings: Optional[ToolSettings] = None) -> CredentialStore:
    """Provider for the shared AWS credentials/config files."""

    settings = settings or get_settings()
    return CredentialStore(credentials_file=settings.credentials_file, config_file=settings.config_file)


def get_project_setup_service(
    *,
    base_dir: Optional[Path] = None,
    prompter: Optional[Prompter] = None,
) -> ProjectSetupService:
    """Provider for the `create` pipeline with interactive prompts and real AWS clients."""

    settings = get_settings()
    return ProjectSetupService(
        settings=settings,
        credentials=get_credential_store(settings),
        prompter=prompter or ClickPrompter(),
        base_dir=base_dir,
    )


def get_function_runtime(runtime_name: str, *, project_root: Optional[Path] = None) -> RuntimeBase:
    return get_runtime(runtime_name, project_root=(project_root or Path.cwd()).resolve())
