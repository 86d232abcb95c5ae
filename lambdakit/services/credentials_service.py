from __future__ import annotations

import configparser
import logging
from pathlib import Path

from lambdakit.services.errors import FilesystemError

logger = logging.getLogger(__name__)


class CredentialStore:
    """Named AWS profiles in the shared credentials/config files."""

    def __init__(self, *, credentials_file: Path, config_file: Path) -> None:
        self._credentials_file = credentials_file
        self._config_file = config_file

    @staticmethod
    def _read(path: Path) -> configparser.ConfigParser:
        parser = configparser.ConfigParser()
        if path.exists():
            try:
                parser.read(path, encoding="utf-8")
            except (OSError, configparser.Error) as exc:
                raise FilesystemError(f"Failed to read AWS profile file: {path}") from exc
        return parser

    @staticmethod
    def _write(path: Path, parser: configparser.ConfigParser) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as fh:
                parser.write(fh)
            path.chmod(0o600)
        except OSError as exc:
            logger.exception("Writing %s failed", path)
            raise FilesystemError(f"Failed to write AWS profile file: {path}") from exc

    def list_profiles(self) -> list[str]:
        return list(self._read(self._credentials_file).sections())

    def has_profile(self, name: str) -> bool:
        return name in self.list_profiles()

    def create_profile(self, *, name: str, region: str, access_key_id: str, secret_access_key: str) -> None:
        credentials = self._read(self._credentials_file)
        credentials[name] = {
            "aws_access_key_id": access_key_id,
            "aws_secret_access_key": secret_access_key,
        }
        self._write(self._credentials_file, credentials)

        config = self._read(self._config_file)
        section = name if name == "default" else f"profile {name}"
        config[section] = {"region": region}
        self._write(self._config_file, config)
        logger.info("Saved AWS profile %s", name)
