"""
Unit tests for adopting externally proposed sessions
"""
from datetime import date

from models.schedule_models import RawSession, Topic
from scheduling.allocator import allocate
from scheduling.proposal import filter_proposal, parse_raw_session, resolve_priority


def summary(schedule):
    return [(s.date, s.topic, s.duration_minutes, s.priority) for s in schedule.sessions]


class TestProposalParsing:
    def test_accepts_snake_and_camel_case(self):
        assert parse_raw_session({"day_number": 1, "topic": "A", "duration_minutes": 30}).day_number == 1
        raw = parse_raw_session({"dayNumber": 2, "topic": " B ", "durationMinutes": "45"})
        assert (raw.day_number, raw.topic, raw.duration_minutes) == (2, "B", 45)

    def test_rejects_malformed_items(self):
        assert parse_raw_session({"day_number": 1, "duration_minutes": 30}) is None
        assert parse_raw_session({"day_number": 1, "topic": "  ", "duration_minutes": 30}) is None
        assert parse_raw_session({"day_number": 0, "topic": "A", "duration_minutes": 30}) is None
        assert parse_raw_session({"day_number": 1, "topic": "A", "duration_minutes": -5}) is None
        assert parse_raw_session({"day_number": 1, "topic": "A", "duration_minutes": "an hour"}) is None
        assert parse_raw_session({"day_number": True, "topic": "A", "duration_minutes": 30}) is None
        assert parse_raw_session({"day_number": 1, "topic": "A", "duration_minutes": True}) is None
        assert parse_raw_session("day 1: study A") is None
        assert parse_raw_session(None) is None

    def test_priority_resolution(self, make_request):
        request = make_request()
        assert resolve_priority(RawSession(day_number=1, topic="B", duration_minutes=10, priority=" HIGH "), request) == "high"
        assert resolve_priority(RawSession(day_number=1, topic="b", duration_minutes=10, priority="urgent"), request) == "low"
        assert resolve_priority(RawSession(day_number=1, topic="Unknown", duration_minutes=10), request) == "medium"


class TestProposalFiltering:
    def test_items_outside_range_are_dropped(self, make_request):
        proposal = [
            {"day_number": 4, "topic": "A", "duration_minutes": 30},
            {"day_number": 10 ** 12, "topic": "A", "duration_minutes": 30},
            {"day_number": 3, "topic": "A", "duration_minutes": 30},
        ]
        kept = filter_proposal(make_request(), proposal)
        assert list(kept) == [date(2024, 1, 3)]

    def test_items_on_rest_days_are_dropped(self, make_request):
        # 6 Jan 2024 is a Saturday
        request = make_request(start=date(2024, 1, 6), end=date(2024, 1, 7), rest_days=[6])
        kept = filter_proposal(request, [
            {"day_number": 1, "topic": "A", "duration_minutes": 30},
            {"day_number": 2, "topic": "B", "duration_minutes": 30},
        ])
        assert list(kept) == [date(2024, 1, 7)]

    def test_items_exceeding_daily_budget_are_dropped(self, make_request):
        request = make_request(minutes=60)
        kept = filter_proposal(request, [
            {"day_number": 1, "topic": "A", "duration_minutes": 45},
            {"day_number": 1, "topic": "B", "duration_minutes": 30},
            {"day_number": 1, "topic": "B", "duration_minutes": 15},
            {"day_number": 2, "topic": "A", "duration_minutes": 90},
        ])
        assert [s.duration_minutes for s in kept[date(2024, 1, 1)]] == [45, 15]
        assert date(2024, 1, 2) not in kept

    def test_days_are_sorted_and_item_order_kept(self, make_request):
        kept = filter_proposal(make_request(minutes=120), [
            {"day_number": 2, "topic": "B", "duration_minutes": 20},
            {"day_number": 1, "topic": "A", "duration_minutes": 20},
            {"day_number": 2, "topic": "A", "duration_minutes": 20},
        ])
        assert list(kept) == [date(2024, 1, 1), date(2024, 1, 2)]
        assert [s.topic for s in kept[date(2024, 1, 2)]] == ["B", "A"]

    def test_non_list_proposal_is_ignored(self, make_request):
        assert filter_proposal(make_request(), {"sessions": []}) == {}
        assert filter_proposal(make_request(), "not a proposal") == {}
        assert filter_proposal(make_request(), None) == {}


class TestProposalAdoption:
    def test_valid_days_adopted_and_gaps_filled(self, make_request):
        request = make_request(minutes=120)
        proposal = [
            {"day_number": 1, "topic": "A", "duration_minutes": 60},
            RawSession(day_number=2, topic="B", duration_minutes=30),
        ]
        schedule = allocate(request, proposal)
        assert summary(schedule) == [
            (date(2024, 1, 1), "A", 60, "high"),
            (date(2024, 1, 2), "B", 30, "low"),
            (date(2024, 1, 3), "A", 90, "high"),
        ]
        assert schedule.ai_generated is True

    def test_adopted_day_is_not_topped_up(self, make_request):
        schedule = allocate(make_request(minutes=240), [{"day": 1, "topic": "A", "duration": 30}])
        assert [(s.topic, s.duration_minutes) for s in schedule.sessions_on(date(2024, 1, 1))] == [("A", 30)]

    def test_garbage_proposal_falls_back_entirely(self, make_request):
        request = make_request()
        proposal = [
            {"day_number": 1, "topic": "A", "duration_minutes": -30},
            {"day_number": 2, "duration_minutes": 30},
            {"day_number": 99, "topic": "A", "duration_minutes": 30},
            {"topic": "B", "duration_minutes": 30},
            42,
            None,
            ["day", 1],
        ]
        schedule = allocate(request, proposal)
        assert schedule.ai_generated is False
        assert schedule.sessions == allocate(request).sessions

    def test_adopted_sessions_are_valid(self, make_request):
        request = make_request(start=date(2024, 1, 7), end=date(2024, 1, 13), minutes=90, rest_days=[0, 6])
        proposal = [{"day_number": n, "topic": "A", "duration_minutes": 50} for n in range(-2, 12)]
        proposal += [{"day_number": n, "topic": "B", "duration_minutes": 50} for n in range(1, 8)]
        schedule = allocate(request, proposal)
        for s in schedule.sessions:
            assert request.start_date <= s.date <= request.end_date
            assert s.date.isoweekday() not in (6, 7)
            assert s.duration_minutes > 0
            assert s.completed is False
        for day in schedule.scheduled_dates():
            assert schedule.minutes_on(day) <= 90
        assert len(schedule.scheduled_dates()) == 5

    def test_unknown_topics_default_to_medium(self, make_request):
        request = make_request(topics=[Topic(name="A", priority="high")])
        schedule = allocate(request, [{"day_number": 1, "topic": "Revision", "duration_minutes": 30}])
        assert schedule.sessions[0].priority == "medium"
