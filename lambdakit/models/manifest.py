from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from lambdakit.models.stack import StackOutputs

MANIFEST_FILENAME = "lambdakit.json"
MANIFEST_VERSION = "0.0.1"


class StageRegion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    region: str
    iam_role_arn_lambda: str = Field(default="", alias="iamRoleArnLambda")
    iam_role_arn_api_gateway: str = Field(default="", alias="iamRoleArnApiGateway")


class EnvVarBucket(BaseModel):
    name: str
    region: str


class ProjectSection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stages: dict[str, list[StageRegion]] = Field(default_factory=dict)
    env_var_bucket: EnvVarBucket = Field(..., alias="envVarBucket")


class ProjectManifest(BaseModel):
    """The persisted `lambdakit.json` at the project root."""

    name: str
    version: str = MANIFEST_VERSION
    location: str = "<enter project's github repository url here>"
    author: str = "Vera D. Servers <vera@example.com> http://vera.io"
    description: str = ""
    project: ProjectSection

    @staticmethod
    def new(*, name: str, bucket: str, region: str) -> "ProjectManifest":
        return ProjectManifest(
            name=name,
            description=f"{name}: An ambitious, server-less application built with lambdakit.",
            project=ProjectSection(env_var_bucket=EnvVarBucket(name=bucket, region=region)),
        )

    def add_stage_region(self, *, stage: str, region: str, outputs: StackOutputs) -> StageRegion:
        record = StageRegion(
            region=region,
            iam_role_arn_lambda=outputs.iam_role_arn_lambda,
            iam_role_arn_api_gateway=outputs.iam_role_arn_api_gateway,
        )
        records = self.project.stages.setdefault(stage, [])
        # One record per region; re-running a stage replaces its record.
        records[:] = [r for r in records if r.region != region]
        records.append(record)
        return record

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    def write(self, path: Path) -> None:
        path.write_text(self.to_json() + "\n", encoding="utf-8")

    @staticmethod
    def load(path: Path) -> "ProjectManifest":
        return ProjectManifest.model_validate_json(path.read_text(encoding="utf-8"))
