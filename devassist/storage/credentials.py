"""
Credential storage, kept apart from project records.
"""
from pathlib import Path
from typing import Optional
import asyncio
import os

from devassist.config.app_config import API_KEY_ENV_VAR

from .base import BaseStorage

class CredentialStorage(BaseStorage[str]):
    """Stores the Gemini API key in its own file, keyed by provider name."""

    def __init__(self, credentials_file: Path):
        self.credentials_file = credentials_file
        super().__init__(credentials_file.parent)

    def _read_all(self) -> dict:
        return self._read_json(self.credentials_file) or {}

    def _get_sync(self, provider: str) -> Optional[str]:
        return self._read_all().get(provider)

    def _set_sync(self, provider: str, value: str) -> None:
        data = self._read_all()
        data[provider] = value
        self._write_json(self.credentials_file, data)

    def _delete_sync(self, provider: str) -> None:
        data = self._read_all()
        if data.pop(provider, None) is not None:
            self._write_json(self.credentials_file, data)

    async def get(self, provider: str = "gemini") -> Optional[str]:
        """Return the stored key, falling back to the environment."""
        stored = await asyncio.to_thread(self._get_sync, provider)
        return stored or os.environ.get(API_KEY_ENV_VAR) or None

    async def list(self):
        data = await asyncio.to_thread(self._read_all)
        return sorted(data)

    async def save(self, value: str, provider: str = "gemini") -> None:
        await asyncio.to_thread(self._set_sync, provider, value)

    async def delete(self, provider: str = "gemini") -> None:
        await asyncio.to_thread(self._delete_sync, provider)
