from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

SUPPORTED_REGIONS: tuple[str, ...] = (
    "us-east-1",
    "us-west-1",
    "eu-west-1",
    "ap-northeast-1",
)
DEFAULT_REGION = "us-east-1"
RESERVED_STAGE = "local"


@dataclass(frozen=True)
class ToolSettings:
    """Process-level tunables for provisioning.

    Stack creation usually takes a few minutes; the timeout is the total budget for
    polling, not per request.
    """

    _DEFAULT_STACK_TIMEOUT_SECONDS: ClassVar[float] = 1800.0
    _DEFAULT_STACK_POLL_SECONDS: ClassVar[float] = 5.0

    credentials_file: Path
    config_file: Path
    stack_timeout_seconds: float = _DEFAULT_STACK_TIMEOUT_SECONDS
    stack_poll_interval_seconds: float = _DEFAULT_STACK_POLL_SECONDS

    @staticmethod
    def _positive_float_from_env(name: str, default: float) -> float:
        raw = os.getenv(name)
        if not raw:
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid {name}; must be a number") from exc
        if value <= 0:
            raise ValueError(f"Invalid {name}; must be greater than zero")
        return value

    @staticmethod
    def from_env() -> "ToolSettings":
        credentials_raw = os.getenv("AWS_SHARED_CREDENTIALS_FILE")
        credentials_file = (
            Path(credentials_raw).expanduser() if credentials_raw else Path.home() / ".aws" / "credentials"
        )
        config_raw = os.getenv("AWS_CONFIG_FILE")
        config_file = Path(config_raw).expanduser() if config_raw else Path.home() / ".aws" / "config"

        return ToolSettings(
            credentials_file=credentials_file,
            config_file=config_file,
            stack_timeout_seconds=ToolSettings._positive_float_from_env(
                "LAMBDAKIT_STACK_TIMEOUT_SECONDS", ToolSettings._DEFAULT_STACK_TIMEOUT_SECONDS
            ),
            stack_poll_interval_seconds=ToolSettings._positive_float_from_env(
                "LAMBDAKIT_STACK_POLL_SECONDS", ToolSettings._DEFAULT_STACK_POLL_SECONDS
            ),
        )
