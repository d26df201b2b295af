"""JSON file persistence for credential records."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from loguru import logger

from .base import CredentialStorageError


class JsonTokenStorage:
    """
    Stores one credential record as a JSON document on disk.

    Writes are not coordinated across concurrent authorizations; the last
    writer wins.
    """

    def __init__(self, file_path: Path) -> None:
        self.file_path = Path(file_path)

    async def exists(self) -> bool:
        return await asyncio.to_thread(self.file_path.is_file)

    async def load(self) -> dict[str, Any] | None:
        """
        Read the stored record.

        Returns:
            The decoded record, or None when no file exists.

        Raises:
            CredentialStorageError: If the file cannot be read or is not a JSON object.
        """
        if not await self.exists():
            logger.debug(f"No credential file at {self.file_path}")
            return None

        def read_file() -> Any:
            with self.file_path.open(encoding="utf-8") as fh:
                return json.load(fh)

        try:
            data = await asyncio.to_thread(read_file)
        except json.JSONDecodeError as exc:
            raise CredentialStorageError(
                f"Failed to parse credential file {self.file_path}: {exc}"
            ) from exc
        except OSError as exc:
            raise CredentialStorageError(
                f"Error reading credential file {self.file_path}: {exc}"
            ) from exc

        if not isinstance(data, dict):
            raise CredentialStorageError(
                f"Credential file {self.file_path} does not contain a JSON object"
            )
        return data

    async def save(self, record: dict[str, Any]) -> None:
        """
        Write the record, replacing any previous one.

        Raises:
            CredentialStorageError: If the file cannot be written.
        """

        def write_file() -> None:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.write_text(json.dumps(record, indent=2), encoding="utf-8")

        try:
            await asyncio.to_thread(write_file)
        except OSError as exc:
            raise CredentialStorageError(
                f"Failed to save credentials to {self.file_path}: {exc}"
            ) from exc
        logger.info(f"Credentials saved to {self.file_path}")
