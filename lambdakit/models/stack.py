from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class StackOutputs(BaseModel):
    """Outputs of the project's CloudFormation stack.

    Only the two IAM role ARNs are consumed; every output is kept in `raw`.
    """

    iam_role_arn_lambda: str = ""
    iam_role_arn_api_gateway: str = ""
    raw: dict[str, str] = Field(default_factory=dict)

    @staticmethod
    def from_cfn_outputs(outputs: Optional[list[dict[str, Any]]]) -> "StackOutputs":
        raw = {str(o.get("OutputKey")): str(o.get("OutputValue") or "") for o in outputs or []}
        return StackOutputs(
            iam_role_arn_lambda=raw.get("IamRoleArnLambda", ""),
            iam_role_arn_api_gateway=raw.get("IamRoleArnApiGateway", ""),
            raw=raw,
        )


class StackStatus(BaseModel):
    stack_id: str
    status: str
    reason: Optional[str] = None
    outputs: StackOutputs = Field(default_factory=StackOutputs)
