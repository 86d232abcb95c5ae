"""
Shared test fixtures: fake AWS session, temp AWS profile files, workspace dir.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from lambdakit.services.config import ToolSettings
from lambdakit.services.credentials_service import CredentialStore

from tests.fakes import FakeAwsSession


@pytest.fixture
def fake_session() -> FakeAwsSession:
    return FakeAwsSession()


@pytest.fixture
def tool_settings(tmp_path: Path) -> ToolSettings:
    aws_dir = tmp_path / "aws"
    return ToolSettings(
        credentials_file=aws_dir / "credentials",
        config_file=aws_dir / "config",
        stack_timeout_seconds=0.2,
        stack_poll_interval_seconds=0.01,
    )


@pytest.fixture
def credential_store(tool_settings: ToolSettings) -> CredentialStore:
    return CredentialStore(
        credentials_file=tool_settings.credentials_file,
        config_file=tool_settings.config_file,
    )


@pytest.fixture
def store_with_profile(credential_store: CredentialStore) -> CredentialStore:
    credential_store.create_profile(
        name="admin", region="us-east-1", access_key_id="AKIAEXAMPLE", secret_access_key="secret"
    )
    return credential_store


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    base = tmp_path / "work"
    base.mkdir()
    return base
