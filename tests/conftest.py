"""
Pytest configuration and shared fixtures.
"""

import pytest
import pytest_asyncio
import sys
from pathlib import Path

# Set asyncio mode
pytest_plugins = ('pytest_asyncio',)

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from devassist.models.chat import ExtractedFile, Message, Sender
from devassist.storage.credentials import CredentialStorage
from devassist.storage.projects import ProjectStorage


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires network)"
    )
    config.option.asyncio_mode = "auto"


class FakeGeminiClient:
    """Stands in for GeminiClient; records calls and replays canned output."""

    def __init__(self, chunks=None, error=None, fail_after=None, analysis="Analysis result", analysis_error=None):
        self.chunks = list(chunks or [])
        self.error = error
        # Number of chunks delivered before the error is raised
        self.fail_after = len(self.chunks) if fail_after is None else fail_after
        self.analysis = analysis
        self.analysis_error = analysis_error
        self.stream_calls = []
        self.analysis_calls = []

    async def stream_message(self, history, message):
        self.stream_calls.append((list(history), message))
        for i, chunk in enumerate(self.chunks):
            if self.error is not None and i == self.fail_after:
                raise self.error
            yield chunk
        if self.error is not None and self.fail_after >= len(self.chunks):
            raise self.error

    async def generate_analysis(self, context, query):
        self.analysis_calls.append((context, query))
        if self.analysis_error is not None:
            raise self.analysis_error
        return self.analysis


@pytest.fixture
def devassist_home(tmp_path):
    """Create a temporary data directory for testing."""
    home = tmp_path / ".devassist"
    home.mkdir()
    return home


@pytest.fixture
def store(devassist_home):
    return ProjectStorage(devassist_home / "projects")


@pytest_asyncio.fixture
async def credentials(devassist_home, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    creds = CredentialStorage(devassist_home / "credentials.json")
    await creds.save("test-key")
    return creds


@pytest.fixture
def fake_client():
    return FakeGeminiClient(chunks=["Hel", "lo, ", "world"])


def make_message(text, timestamp, sender=Sender.USER, message_id=None):
    return Message(id=message_id or f"msg-{timestamp}-{text}", text=text, sender=sender, timestamp=timestamp)


def make_file(path, content="<?php"):
    return ExtractedFile(path=path, content=content)
