from __future__ import annotations

import asyncio
import json
import logging
import os
from importlib import resources
from pathlib import Path
from typing import Any, Callable, Optional

import click

from lambdakit.models.manifest import MANIFEST_FILENAME, ProjectManifest
from lambdakit.models.stack import StackOutputs
from lambdakit.services.cloudformation_service import CloudFormationConfig, CloudFormationService
from lambdakit.services.config import (
    DEFAULT_REGION,
    SUPPORTED_REGIONS,
    ProjectAnswers,
    ProjectConfig,
    ToolSettings,
)
from lambdakit.services.credentials_service import CredentialStore
from lambdakit.services.errors import FilesystemError
from lambdakit.services.s3_service import S3Config, S3Service, stage_env_contents
from lambdakit.services.setup.prompts import Prompter

logger = logging.getLogger(__name__)

TEMPLATE_FILENAME = "lambdakit-cf.json"
ADMIN_ENV_FILENAME = "admin.env"
PROJECT_DIRS = ("front", "tests", "back/lambdas", "back/lib")


def load_stack_template() -> dict[str, Any]:
    source = resources.files("lambdakit").joinpath("templates", TEMPLATE_FILENAME)
    return json.loads(source.read_text(encoding="utf-8"))


def render_stack_template(config: ProjectConfig) -> dict[str, Any]:
    template = load_stack_template()
    params = template["Parameters"]
    params["ProjectName"]["Default"] = config.name
    params["ProjectName"]["AllowedValues"] = [config.name]
    params["Stage"]["Default"] = config.stage
    # Bootstrap uses the stage as the data model prefix.
    params["DataModelPrefix"]["Default"] = config.stage
    params["NotificationEmail"]["Default"] = config.notification_email
    return template


class ProjectSetupService:
    """Creates a new project: answers, env var bucket, local scaffold, stack, manifest.

    Steps run strictly in order and nothing is rolled back on failure. Remote storage
    is set up before anything is written locally so a bad bucket leaves no directory
    behind; the stack comes last because it is slow and needs the scaffolded template.
    """

    def __init__(
        self,
        *,
        settings: ToolSettings,
        credentials: CredentialStore,
        prompter: Prompter,
        base_dir: Optional[Path] = None,
        s3_factory: Optional[Callable[[ProjectConfig], S3Service]] = None,
        cfn_factory: Optional[Callable[[ProjectConfig], CloudFormationService]] = None,
        echo: Callable[[str], None] = click.echo,
    ) -> None:
        self._settings = settings
        self._credentials = credentials
        self._prompter = prompter
        self._base_dir = (base_dir or Path.cwd()).resolve()
        self._s3_factory = s3_factory or self._default_s3
        self._cfn_factory = cfn_factory or self._default_cfn
        self._echo = echo

    @staticmethod
    def _default_s3(config: ProjectConfig) -> S3Service:
        return S3Service(
            S3Config(bucket_name=config.bucket, region_name=config.region, profile_name=config.credential_profile)
        )

    def _default_cfn(self, config: ProjectConfig) -> CloudFormationService:
        return CloudFormationService(
            CloudFormationConfig(
                region_name=config.region,
                profile_name=config.credential_profile,
                timeout_seconds=self._settings.stack_timeout_seconds,
                poll_interval_seconds=self._settings.stack_poll_interval_seconds,
            )
        )

    async def create(
        self,
        *,
        project_name: Optional[str] = None,
        stage: Optional[str] = None,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        notification_email: Optional[str] = None,
        credential_profile: Optional[str] = None,
        skip_stack_execution: bool = False,
    ) -> ProjectManifest:
        answers = self.collect_answers(
            project_name=project_name,
            stage=stage,
            bucket=bucket,
            region=region,
            notification_email=notification_email,
            credential_profile=credential_profile,
        )
        config = self.prepare_project(answers)

        await self.ensure_storage(config)
        await self.scaffold_project(config)

        outputs: Optional[StackOutputs] = None
        if skip_stack_execution:
            logger.info("Stack execution skipped, writing %s only", MANIFEST_FILENAME)
            self._echo(
                "Project and env var file in s3 successfully created. "
                "CloudFormation file can be run manually"
            )
            self._echo(
                f"After creating CF stack, remember to put the IAM role outputs in your project {MANIFEST_FILENAME}"
            )
        else:
            outputs = await self.provision_stack(config)

        return self.finalize_manifest(config, outputs)

    # -----------------
    # Pipeline steps
    # -----------------

    def collect_answers(
        self,
        *,
        project_name: Optional[str] = None,
        stage: Optional[str] = None,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        notification_email: Optional[str] = None,
        credential_profile: Optional[str] = None,
    ) -> ProjectAnswers:
        """Prompt for every value not supplied by the caller."""

        answers = ProjectAnswers()
        prompt = self._prompter

        profiles = self._credentials.list_profiles()
        if profiles:
            if credential_profile and credential_profile in profiles:
                answers.credential_profile = credential_profile
            else:
                answers.credential_profile = prompt.choice(
                    "What AWS profile should be used for your admin user?",
                    choices=profiles,
                    default=profiles[0],
                )
        else:
            answers.admin_key_id = prompt.text("Please enter the ACCESS KEY ID for your ADMIN AWS IAM User")
            answers.admin_secret_key = prompt.text(
                "Please enter the SECRET ACCESS KEY for your ADMIN AWS IAM User",
                hide_input=True,
            )

        answers.name = project_name or prompt.text(
            "Type a name for your new project (max 20 chars. Alphanumeric and - only)",
            default="lambdakit-new",
        )
        answers.stage = stage or prompt.text(
            "Which stage would you like to create? (you can import more later)",
            default="dev",
        )
        answers.bucket = bucket or prompt.text(
            "What bucket should be used to store env var files for this project? "
            "(This bucket should be specific to this project.)",
            default="lambdakitproject.yourdomain.com",
        )
        answers.region = region or prompt.choice(
            "Which AWS Region would you like to use (can add more/change later)?",
            choices=SUPPORTED_REGIONS,
            default=DEFAULT_REGION,
        )
        if notification_email is not None:
            answers.notification_email = notification_email
        else:
            answers.notification_email = prompt.text("Email you would like to use for AWS alarms", default="")
        return answers

    def prepare_project(self, answers: ProjectAnswers) -> ProjectConfig:
        config = ProjectConfig.from_answers(answers, base_dir=self._base_dir)
        if not answers.credential_profile:
            self._credentials.create_profile(
                name=config.credential_profile,
                region=config.region,
                access_key_id=answers.admin_key_id or "",
                secret_access_key=answers.admin_secret_key or "",
            )
        logger.info("Project %s (stage=%s, region=%s)", config.name, config.stage, config.region)
        return config

    async def ensure_storage(self, config: ProjectConfig) -> None:
        s3 = self._s3_factory(config)
        await s3.ensure_bucket()
        key = await s3.put_env_file(
            project_name=config.name,
            stage=config.stage,
            contents=stage_env_contents(config.stage),
        )
        logger.info("Uploaded stage env file s3://%s/%s", config.bucket, key)

    async def scaffold_project(self, config: ProjectConfig) -> None:
        """Create the project tree; every directory/file after the root is created concurrently.

        When the run adds a stage to an existing project the tree is reused and the stage
        files (`back/.env`, the stack template) are rewritten for the new stage.
        """

        root = config.root_path
        template = render_stack_template(config)

        def _mkdir(path: Path) -> None:
            path.mkdir(parents=True, exist_ok=config.adds_stage)

        def _write(path: Path, contents: str) -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(contents, encoding="utf-8")

        try:
            await asyncio.to_thread(_mkdir, root)
            await asyncio.to_thread(_write, root / "back" / ".env", stage_env_contents(config.stage))
            await asyncio.gather(
                *(asyncio.to_thread(_mkdir, root / rel) for rel in PROJECT_DIRS),
                asyncio.to_thread(
                    _write, root / ADMIN_ENV_FILENAME, f"ADMIN_AWS_PROFILE={config.credential_profile}{os.linesep}"
                ),
                asyncio.to_thread(_write, root / TEMPLATE_FILENAME, json.dumps(template, indent=2)),
            )
        except OSError as exc:
            logger.exception("Scaffolding %s failed", root)
            raise FilesystemError(f"Failed to create project directory {root}: {exc}") from exc

    async def provision_stack(self, config: ProjectConfig) -> StackOutputs:
        self._echo(
            f'Creating an AWS CloudFormation Stack for the "{config.stage}" stage of your project. '
            "This doesn't cost anything, but takes around 5 minutes to set-up. Sit tight!"
        )
        cfn = self._cfn_factory(config)
        stack_id = await cfn.create_stack(
            template_path=config.root_path / TEMPLATE_FILENAME,
            project_name=config.name,
            stage=config.stage,
            notification_email=config.notification_email,
        )
        return await cfn.wait_for_stack(stack_id)

    def finalize_manifest(self, config: ProjectConfig, outputs: Optional[StackOutputs]) -> ProjectManifest:
        path = config.root_path / MANIFEST_FILENAME
        try:
            manifest = (
                ProjectManifest.load(path)
                if path.exists()
                else ProjectManifest.new(name=config.name, bucket=config.bucket, region=config.region)
            )
            manifest.add_stage_region(stage=config.stage, region=config.region, outputs=outputs or StackOutputs())
            manifest.write(path)
        except OSError as exc:
            logger.exception("Writing %s failed", path)
            raise FilesystemError(f"Failed to write project manifest {path}") from exc

        if config.adds_stage:
            self._echo(f'Stage "{config.stage}" has been added to your project "{config.name}" in {config.root_path}')
        else:
            self._echo(f'Your project "{config.name}" has been successfully created in {config.root_path}')
        return manifest
