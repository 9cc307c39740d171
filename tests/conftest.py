from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from bidboard.assist.client import BidAssistant
from bidboard.assist.config import AIConfig, RetryPolicy
from bidboard.config import Config
from bidboard.models import Estimate, LineItem
from bidboard.seed import sample_store
from bidboard.store import EstimateStore


class FakeClock:
    """Deterministic clock; every call advances one second."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current

    def rewind(self, seconds: float) -> None:
        self.current = self.current - timedelta(seconds=seconds)


class FakeResponses:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.queue: List[Any] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if not self.queue:
            raise AssertionError("No fake response queued")
        result = self.queue.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeOpenAI:
    def __init__(self) -> None:
        self.responses = FakeResponses()

    def queue_json(self, payload: object, **extra: Any) -> None:
        self.responses.queue.append(SimpleNamespace(output_text=json.dumps(payload), output=[], **extra))

    def queue(self, result: Any) -> None:
        self.responses.queue.append(result)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock: FakeClock) -> EstimateStore:
    return sample_store(clock=clock, config=Config())


@pytest.fixture
def draft(clock: FakeClock) -> Estimate:
    return Estimate.create(
        estimate_id="est-test",
        name="Warehouse Slab",
        customer_id="c1",
        location="Tulsa, OK",
        updated_at=clock(),
        margin=15,
        tax=8.5,
    )


@pytest.fixture
def priced(draft: Estimate) -> Estimate:
    from dataclasses import replace

    from bidboard.pricing import reprice

    items = (
        LineItem.build("Demolition", "Internal walls and slab", 1, 12000, item_id="a"),
        LineItem.build("Concrete", "Pad reinforcement", 450, 85, item_id="b"),
    )
    return reprice(replace(draft, line_items=items))


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def ai_config() -> AIConfig:
    return AIConfig(
        enabled=True,
        api_key_env="BIDBOARD_TEST_KEY",
        retry=RetryPolicy(timeout_seconds=5.0, retries=1, backoff_factor=0.0, circuit_breaker_failures=3),
    )


@pytest.fixture
def assistant(ai_config: AIConfig, fake_openai: FakeOpenAI) -> BidAssistant:
    return BidAssistant(ai_config, client=fake_openai, sleeper=lambda _: None)
