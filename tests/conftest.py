"""
Pytest configuration and fake collaborators
"""
import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

# Modules live at the repository root
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from errors import PersistenceError
from models import ClassificationResult
from orchestrator import SubmissionOrchestrator
from staging import InputStagingStore


class FakeClassifier:
    """Records calls; each call waits on a future the test resolves."""

    def __init__(self):
        self.calls: List[Tuple[str, str, Optional[bytes]]] = []
        self.pending: List[asyncio.Future] = []

    async def analyze(self, query, postcode, image=None):
        self.calls.append((query, postcode, image))
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    def resolve(self, index: int, result=None, error: Optional[Exception] = None):
        if error is not None:
            self.pending[index].set_exception(error)
        else:
            self.pending[index].set_result(result)


class FakeEnricher:
    def __init__(self):
        self.calls: List[str] = []
        self.pending: List[asyncio.Future] = []

    async def suggest(self, item_name):
        self.calls.append(item_name)
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    def resolve(self, index: int, text: str = "", error: Optional[Exception] = None):
        if error is not None:
            self.pending[index].set_exception(error)
        else:
            self.pending[index].set_result(text)


class MemoryPreferenceStore:
    def __init__(self, values: Optional[Dict[str, str]] = None, fail: bool = False):
        self.values: Dict[str, str] = dict(values or {})
        self.fail = fail
        self.set_calls: List[Tuple[str, str]] = []
        self.get_calls: List[str] = []

    async def get(self, key):
        self.get_calls.append(key)
        if self.fail:
            raise PersistenceError("disk unavailable")
        return self.values.get(key)

    async def set(self, key, value):
        self.set_calls.append((key, value))
        if self.fail:
            raise PersistenceError("disk unavailable")
        self.values[key] = value


async def fake_image_loader(ref: str) -> bytes:
    return f"bytes:{ref}".encode()


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_result(recyclable="yes", **overrides) -> ClassificationResult:
    payload = {
        "recyclable": recyclable,
        "binColor": "Green Recycling Bin",
        "tip": "Rinse it first.",
        "answer": "Plastic bottles are widely recycled.",
    }
    payload.update(overrides)
    return ClassificationResult.model_validate(payload)


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def enricher():
    return FakeEnricher()


@pytest.fixture
def preferences():
    return MemoryPreferenceStore()


@pytest.fixture
def staging():
    return InputStagingStore()


@pytest.fixture
def orchestrator(classifier, enricher, preferences, staging):
    return SubmissionOrchestrator(
        classifier=classifier,
        enricher=enricher,
        preferences=preferences,
        staging=staging,
        image_loader=fake_image_loader,
    )


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Poll until ``predicate()`` holds; for flows that hop through worker threads."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)
