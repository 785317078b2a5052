"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timezone

import pytest

from app.models.workout import Exercise, WorkoutSet
from app.services.entities import EntityService
from app.services.store.memory import InMemoryStore

FIXED_NOW = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def run():
    """Run a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def store():
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def service(store, run):
    """Entity service over an initialized in-memory store with a fixed clock."""
    service = EntityService(store, now=lambda: FIXED_NOW)
    run(service.initialize())
    return service


@pytest.fixture
def bench_press():
    """Bench press with two sets, as logged from the app."""
    return Exercise(
        exercise_name="Bench Press",
        sets=[WorkoutSet(reps=5, weight=135), WorkoutSet(reps=5, weight=140)],
    )
