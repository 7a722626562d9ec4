"""
Pytest configuration and fixtures
"""

import asyncio
import io
import sys
from pathlib import Path
from typing import Callable, List, Optional

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from reconstructor.reconstruction_service import ReconstructionService


class FakeLlmClient:
    """Stands in for LlmClient: returns canned responses and records prompts."""

    def __init__(self, responses: Optional[List] = None):
        self.responses = list(responses or [])
        self.prompts: List[str] = []

    async def ainvoke(self, prompt: str, *, log: Optional[Callable[[str], None]] = None) -> str:
        self.prompts.append(prompt)
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class GatedLlmClient(FakeLlmClient):
    """Blocks inside ainvoke until the test opens the gate."""

    def __init__(self, response: str):
        super().__init__([response])
        self.started = asyncio.Event()
        self.gate = asyncio.Event()

    async def ainvoke(self, prompt: str, *, log=None) -> str:
        self.started.set()
        await self.gate.wait()
        return await super().ainvoke(prompt, log=log)


class NamedBytes(io.BytesIO):
    def __init__(self, data: bytes, name: str):
        super().__init__(data)
        self.name = name


@pytest.fixture
def make_file() -> Callable[..., NamedBytes]:
    def _make(text: str, name: str = "chat.txt") -> NamedBytes:
        return NamedBytes(text.encode("utf-8"), name)

    return _make


@pytest.fixture
def fake_llm_factory() -> Callable[..., FakeLlmClient]:
    return FakeLlmClient


@pytest.fixture
def make_service() -> Callable[..., ReconstructionService]:
    def _make(*responses) -> ReconstructionService:
        return ReconstructionService(FakeLlmClient(list(responses)))

    return _make


LEGACY_COMPLETE = '{"1.0":{"version":"1.0","rules":[{"id":"Regel-1","was":"x","warum":"y","wie":"z"}]}}'
INDEXED_INCOMPLETE = '{"versions":{"1.0":{"rules":{"r1":{"was":"x"}}}}}'


@pytest.fixture
def sample_index() -> dict:
    return {
        "meta": {"source": "evoki"},
        "versions": {
            "1.0": {
                "rules": {
                    "r1": {"was": "a", "accepted": True},
                    "r2": {"was": "b", "accepted": False},
                    "r3": {"was": "c"},
                }
            },
            "1.1": {
                "rules": {
                    "r4": {"wortlaut": "d", "accepted": "true"},
                }
            },
            "2.0": {
                "rules": {
                    "r5": {"was": "e", "accepted": True},
                    "r6": {"was": "f", "accepted": True},
                }
            },
        },
    }
