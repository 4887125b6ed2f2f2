"""
Validation of externally proposed sessions.

Proposals come from the planner agent and are untrusted: every item is checked
on its own and bad items are dropped without failing the whole proposal.
"""
import logging
from collections import defaultdict
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
from pydantic import ValidationError

from models.schedule_models import PRIORITY_RANK, RawSession, ScheduleRequest, Session
from scheduling.calendar_utils import date_for_day_number, day_count, is_rest_day
from utils.logging import log_proposal_outcome

logger = logging.getLogger(__name__)


def parse_raw_session(item: Any) -> Optional[RawSession]:
    if isinstance(item, RawSession):
        return item
    try:
        return RawSession.model_validate(item)
    except ValidationError as e:
        logger.debug(f"Discarding proposal item {item!r}: {e.error_count()} validation error(s)")
        return None


def resolve_priority(raw: RawSession, request: ScheduleRequest) -> str:
    """Use the proposed priority when valid, else the first matching topic's."""
    if raw.priority and raw.priority.strip().lower() in PRIORITY_RANK:
        return raw.priority.strip().lower()
    wanted = raw.topic.casefold()
    for topic in request.topics:
        if topic.name.casefold() == wanted:
            return topic.priority
    return "medium"


def filter_proposal(
    request: ScheduleRequest,
    external_proposal: Optional[Sequence[Any]]
) -> Dict[date, List[Session]]:
    """
    Keep the proposal items that fit the request.

    Returns the surviving sessions grouped by date (in date order), keeping the
    proposal's order within a date. Items that would push a day over the daily
    budget are dropped. An empty dict means nothing usable was proposed.
    """
    if not external_proposal or not isinstance(external_proposal, (list, tuple)):
        return {}

    total_days = day_count(request.start_date, request.end_date)
    by_date: Dict[date, List[Session]] = defaultdict(list)
    minutes_used: Dict[date, int] = defaultdict(int)
    adopted = 0

    for item in external_proposal:
        raw = parse_raw_session(item)
        if raw is None:
            continue
        if raw.day_number > total_days:
            continue

        day = date_for_day_number(request.start_date, raw.day_number)
        if is_rest_day(day, request.rest_days):
            continue
        if minutes_used[day] + raw.duration_minutes > request.study_minutes_per_day:
            continue

        by_date[day].append(Session(
            date=day,
            topic=raw.topic,
            duration_minutes=raw.duration_minutes,
            priority=resolve_priority(raw, request),
        ))
        minutes_used[day] += raw.duration_minutes
        adopted += 1

    log_proposal_outcome(len(external_proposal), adopted, len(by_date))
    return {day: by_date[day] for day in sorted(by_date)}
