import pytest
from datetime import date
from fastapi.testclient import TestClient

from api_server.main import app, get_planner_agent
from models.schedule_models import ScheduleRequest, Topic


class FakePlanner:
    """Stands in for PlannerAgent; returns a canned proposal."""

    def __init__(self, proposal=None):
        self.proposal = proposal
        self.calls = []

    def propose_sessions(self, request):
        self.calls.append(request)
        return self.proposal


@pytest.fixture
def make_request():
    def _make(start=date(2024, 1, 1), end=date(2024, 1, 3), minutes=90, rest_days=(), topics=None):
        if topics is None:
            topics = [Topic(name="A", priority="high"), Topic(name="B", priority="low")]
        return ScheduleRequest(
            start_date=start,
            end_date=end,
            study_minutes_per_day=minutes,
            rest_days=frozenset(rest_days),
            topics=tuple(topics),
        )
    return _make


@pytest.fixture
def fake_planner():
    return FakePlanner()


@pytest.fixture
def client(fake_planner):
    app.dependency_overrides[get_planner_agent] = lambda: fake_planner
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
