from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import aioboto3
from botocore.exceptions import ClientError
from tqdm import tqdm

from lambdakit.models.stack import StackOutputs, StackStatus
from lambdakit.services.errors import (
    AwsServiceError,
    FilesystemError,
    ProvisioningTimeoutError,
    RemoteConflictError,
    StackCreationFailedError,
)

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = frozenset({"CREATE_COMPLETE"})
RETRYABLE_ERROR_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "ServiceUnavailable",
        "InternalFailure",
    }
)


class StackNotReadyError(AwsServiceError):
    """A describe call failed in a way worth retrying (throttling, or the stack is not visible yet)."""


def _is_retryable(exc: ClientError) -> bool:
    error = exc.response.get("Error", {})
    code = error.get("Code")
    if code in RETRYABLE_ERROR_CODES:
        return True
    # Right after creation describe_stacks can report the stack as missing.
    return code == "ValidationError" and "does not exist" in str(error.get("Message", ""))


def stack_name_for(project_name: str, stage: str) -> str:
    return f"{project_name}-{stage}"


def is_failure_status(status: str) -> bool:
    return status.endswith("_FAILED") or status.endswith("ROLLBACK_COMPLETE") or status == "DELETE_COMPLETE"


@dataclass(frozen=True)
class CloudFormationConfig:
    region_name: str
    profile_name: Optional[str] = None
    timeout_seconds: float = 1800.0
    poll_interval_seconds: float = 5.0


class CloudFormationService:
    """Creates the per-stage project stack and waits for it to settle."""

    def __init__(self, config: CloudFormationConfig, *, session: Any = None) -> None:
        self._config = config
        self._session = session or aioboto3.Session(profile_name=config.profile_name)

    def _client(self) -> Any:
        return self._session.client("cloudformation", region_name=self._config.region_name)

    async def create_stack(
        self,
        *,
        template_path: Path,
        project_name: str,
        stage: str,
        notification_email: str,
    ) -> str:
        """Submit the stack; returns its StackId."""

        try:
            template_body = template_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise FilesystemError(f"Failed to read stack template: {template_path}") from exc

        stack_name = stack_name_for(project_name, stage)
        parameters = [
            {"ParameterKey": "ProjectName", "ParameterValue": project_name},
            {"ParameterKey": "Stage", "ParameterValue": stage},
            {"ParameterKey": "DataModelPrefix", "ParameterValue": stage},
            {"ParameterKey": "NotificationEmail", "ParameterValue": notification_email},
        ]

        try:
            cfn_client: Any = self._client()
            async with cfn_client as cfn:
                resp = await cfn.create_stack(
                    StackName=stack_name,
                    TemplateBody=template_body,
                    Parameters=parameters,
                    Capabilities=["CAPABILITY_IAM"],
                    Tags=[
                        {"Key": "lambdakit:project", "Value": project_name},
                        {"Key": "lambdakit:stage", "Value": stage},
                    ],
                )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code == "AlreadyExistsException":
                raise RemoteConflictError(f"CloudFormation stack {stack_name} already exists") from exc
            logger.exception("CloudFormation create_stack failed")
            raise AwsServiceError(f"Failed to create CloudFormation stack {stack_name}") from exc
        except Exception as exc:
            logger.exception("CloudFormation create_stack failed")
            raise AwsServiceError(f"Failed to create CloudFormation stack {stack_name}") from exc

        stack_id = str(resp.get("StackId") or stack_name)
        logger.info("Submitted CloudFormation stack %s", stack_id)
        return stack_id

    async def describe_stack(self, stack_id: str) -> StackStatus:
        try:
            cfn_client: Any = self._client()
            async with cfn_client as cfn:
                resp = await cfn.describe_stacks(StackName=stack_id)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            message = f"Failed describing CloudFormation stack {stack_id} ({code}): {exc}"
            if _is_retryable(exc):
                raise StackNotReadyError(message) from exc
            logger.error(message)
            raise AwsServiceError(message) from exc
        except Exception as exc:
            logger.exception("CloudFormation describe_stacks failed")
            raise AwsServiceError(f"Failed describing CloudFormation stack {stack_id}: {exc}") from exc

        stacks = resp.get("Stacks") or []
        if not stacks:
            raise StackNotReadyError(f"CloudFormation stack not found: {stack_id}")
        stack = stacks[0]
        return StackStatus(
            stack_id=str(stack.get("StackId") or stack_id),
            status=str(stack.get("StackStatus") or "").upper(),
            reason=stack.get("StackStatusReason"),
            outputs=StackOutputs.from_cfn_outputs(stack.get("Outputs")),
        )

    async def wait_for_stack(self, stack_id: str, *, show_progress: bool = True) -> StackOutputs:
        """Poll until the stack reaches a terminal status or the timeout budget runs out."""

        deadline = time.monotonic() + self._config.timeout_seconds
        last_error: Optional[StackNotReadyError] = None
        progress = tqdm(desc="Creating CloudFormation stack", unit="poll", disable=not show_progress)
        try:
            while time.monotonic() < deadline:
                try:
                    current = await self.describe_stack(stack_id)
                except StackNotReadyError as exc:
                    logger.debug("describe_stacks failed for %s; retrying: %s", stack_id, exc)
                    last_error = exc
                    current = None
                else:
                    last_error = None

                if current is not None:
                    progress.set_postfix_str(current.status or "?")
                    if current.status in SUCCESS_STATUSES:
                        return current.outputs
                    if is_failure_status(current.status):
                        raise StackCreationFailedError(
                            f"CloudFormation stack {stack_id} ended in {current.status}"
                            + (f": {current.reason}" if current.reason else "")
                        )

                progress.update(1)
                await asyncio.sleep(self._config.poll_interval_seconds)
        finally:
            progress.close()

        raise ProvisioningTimeoutError(
            f"Timed out after {self._config.timeout_seconds:g}s waiting for CloudFormation stack {stack_id}"
            + (f" (last error: {last_error})" if last_error else "")
        )
