"""
Study schedule allocation.

`allocate` turns a ScheduleRequest into a day-by-day Schedule. Days covered by
a valid external proposal keep the proposed sessions; every other study day is
filled by a deterministic round-robin over the priority-sorted topics.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from models.schedule_models import PRIORITY_RANK, Schedule, ScheduleRequest, Session, Topic
from scheduling.calendar_utils import iter_study_dates
from scheduling.errors import InvalidRequest
from scheduling.proposal import filter_proposal
from utils.config import ScheduleConfig
from utils.logging import log_fallback

logger = logging.getLogger(__name__)

SESSION_MINUTES: Dict[str, int] = {
    "high": ScheduleConfig.HIGH_PRIORITY_MINUTES,
    "medium": ScheduleConfig.MEDIUM_PRIORITY_MINUTES,
    "low": ScheduleConfig.LOW_PRIORITY_MINUTES,
}


def validate_request(request: ScheduleRequest) -> None:
    problems = []
    if request.start_date > request.end_date:
        problems.append("start date must not be after end date")
    if request.study_minutes_per_day <= 0:
        problems.append("daily study time must be positive")
    if not request.topics:
        problems.append("at least one topic is required")
    bad_days = sorted(d for d in request.rest_days if d < 0 or d > 6)
    if bad_days:
        problems.append(f"rest days must be between 0 and 6, got {bad_days}")

    if problems:
        raise InvalidRequest("Invalid schedule request: " + "; ".join(problems), problems)


def prioritized_topics(topics: Sequence[Topic]) -> List[Topic]:
    """Order topics high before medium before low, keeping input order on ties."""
    return sorted(topics, key=lambda t: PRIORITY_RANK[t.priority])


def fill_day(
    day: date,
    topics: Sequence[Topic],
    cursor: int,
    budget: int
) -> Tuple[List[Session], int]:
    """
    Fill one day from the round-robin cursor.

    Stops at the first topic that does not fit without moving the cursor past
    it, so that topic is tried first on the next day. Returns the day's
    sessions and the new cursor.
    """
    sessions: List[Session] = []
    used = 0
    max_attempts = ScheduleConfig.FILL_ATTEMPTS_PER_TOPIC * len(topics)

    for _ in range(max_attempts):
        topic = topics[cursor]
        minutes = SESSION_MINUTES[topic.priority]
        if used + minutes > budget:
            break
        sessions.append(Session(
            date=day,
            topic=topic.name,
            duration_minutes=minutes,
            priority=topic.priority,
        ))
        used += minutes
        cursor = (cursor + 1) % len(topics)

    return sessions, cursor


def allocate(
    request: ScheduleRequest,
    external_proposal: Optional[Sequence[Any]] = None
) -> Schedule:
    """
    Build the schedule for a request.

    Args:
        request: Validated scheduling parameters.
        external_proposal: Optional raw sessions from the planner agent. Items
            may be dicts or RawSession objects; invalid ones are ignored.

    Returns:
        Schedule: sessions in date order, all marked not completed.

    Raises:
        InvalidRequest: If the request parameters cannot produce a schedule.
    """
    validate_request(request)

    proposed = filter_proposal(request, external_proposal)
    topics = prioritized_topics(request.topics)
    cursor = 0
    fallback_days = 0
    sessions: List[Session] = []

    for day in iter_study_dates(request.start_date, request.end_date, request.rest_days):
        if day in proposed:
            sessions.extend(proposed[day])
            continue
        day_sessions, cursor = fill_day(day, topics, cursor, request.study_minutes_per_day)
        sessions.extend(day_sessions)
        fallback_days += 1

    if fallback_days:
        reason = "partial_proposal" if proposed else "no_proposal"
        log_fallback(reason, fallback_days)
    logger.debug(f"Allocated {len(sessions)} sessions from {request.start_date} to {request.end_date}")

    return Schedule(
        start_date=request.start_date,
        end_date=request.end_date,
        sessions=sessions,
        ai_generated=bool(proposed),
        fallback_days=fallback_days,
    )
