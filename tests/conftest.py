import pytest

from services.hash_lookup import HashLookupService
from services.interpretation import (
    DefaultBackend,
    InterpretationService,
)
from workflows.file_analysis import FileAnalysisWorkflow


@pytest.fixture
def anyio_backend():
    return "asyncio"


class RecordingBackend:
    """Interpretation backend double that remembers every prompt it receives."""

    def __init__(self, response: str = "interpretation text") -> None:
        self.response = response
        self.prompts = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.response


@pytest.fixture
def recording_backend():
    return RecordingBackend()


@pytest.fixture
def make_workflow():
    def _make(backend=None, signatures=None, **services):
        return FileAnalysisWorkflow(
            signatures=HashLookupService(signatures),
            interpreter=InterpretationService(backend or DefaultBackend()),
            **services,
        )

    return _make
