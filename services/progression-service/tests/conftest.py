"""
Pytest configuration for progression-service tests
"""
import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from app.schemas import PlayerState
from app.services.progression_service import ProgressionStore


T0 = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable `now` provider"""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class InMemoryRepository:
    """Stand-in for ProgressionRepository with the same contract"""

    def __init__(self, fail: bool = False):
        self.states: Dict[str, PlayerState] = {}
        self.saves = 0
        self.fail = fail

    def get_state(self, user_id: str) -> Optional[PlayerState]:
        state = self.states.get(user_id)
        return state.model_copy(deep=True) if state is not None else None

    def save_state(self, user_id: str, state: PlayerState) -> bool:
        if self.fail:
            return False
        self.states[user_id] = state.model_copy(deep=True)
        self.saves += 1
        return True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """Fresh player: energy 100, hunger 0, 0 coins, reputation 3"""
    return ProgressionStore(clock=clock, player_id="test-user")


@pytest.fixture
def make_store(clock):
    """Factory for a store starting from explicit state fields"""
    def _make(**fields) -> ProgressionStore:
        return ProgressionStore(state=PlayerState(**fields), clock=clock, player_id="test-user")
    return _make


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def failing_repository():
    return InMemoryRepository(fail=True)
