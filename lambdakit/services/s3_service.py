from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import aioboto3
from botocore.exceptions import ClientError

from lambdakit.services.errors import AwsServiceError, RemoteConflictError


logger = logging.getLogger(__name__)

ENV_VARS_PREFIX = "lambdakit/envVars"


class S3ServiceError(AwsServiceError):
    pass


def env_file_key(project_name: str, stage: str) -> str:
    return f"{ENV_VARS_PREFIX}/{project_name}/{stage}"


def stage_env_contents(stage: str) -> str:
    return f"LAMBDAKIT_STAGE={stage}\nLAMBDAKIT_DATA_MODEL_PREFIX={stage}"


@dataclass(frozen=True)
class S3Config:
    bucket_name: str
    region_name: str
    profile_name: Optional[str] = None
    endpoint_url: Optional[str] = None


class S3Service:
    def __init__(self, config: S3Config, *, session: Any = None) -> None:
        self._config = config
        self._session = session or aioboto3.Session(profile_name=config.profile_name)

    def _client(self) -> Any:
        return self._session.client(
            "s3",
            region_name=self._config.region_name,
            endpoint_url=self._config.endpoint_url,
        )

    async def ensure_bucket(self) -> bool:
        """Create the bucket unless this account already owns it.

        Returns True when the bucket was created, False when it already existed.
        A bucket name taken by another account raises RemoteConflictError.
        """

        kwargs: dict[str, Any] = {"Bucket": self._config.bucket_name}
        # us-east-1 rejects an explicit location constraint.
        if self._config.region_name != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._config.region_name}

        try:
            s3_client: Any = self._client()
            async with s3_client as s3:
                await s3.create_bucket(**kwargs)
            logger.info("Created S3 bucket %s (%s)", self._config.bucket_name, self._config.region_name)
            return True
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code == "BucketAlreadyOwnedByYou":
                logger.info("S3 bucket %s already exists", self._config.bucket_name)
                return False
            if code == "BucketAlreadyExists":
                raise RemoteConflictError(
                    f"Bucket {self._config.bucket_name} already exists and is owned by another account"
                ) from exc
            logger.exception("S3 create_bucket failed")
            raise S3ServiceError(f"Failed to create bucket {self._config.bucket_name}") from exc
        except Exception as exc:
            logger.exception("S3 create_bucket failed")
            raise S3ServiceError(f"Failed to create bucket {self._config.bucket_name}") from exc

    async def put_env_file(self, *, project_name: str, stage: str, contents: str) -> str:
        key = env_file_key(project_name, stage)
        try:
            s3_client: Any = self._client()
            async with s3_client as s3:
                await s3.put_object(
                    Bucket=self._config.bucket_name,
                    Key=key,
                    Body=contents.encode("utf-8"),
                    ContentType="text/plain",
                )
            return key
        except Exception as exc:
            logger.exception("S3 put_env_file failed")
            raise S3ServiceError(f"Failed to upload env file to S3 (key={key})") from exc
