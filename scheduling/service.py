import logging
import time
from typing import Optional

from agents.planner_agent import PlannerAgent
from models.schedule_models import Schedule, ScheduleGenerateRequest
from scheduling.allocator import allocate, validate_request
from utils.logging import log_ai_request

logger = logging.getLogger(__name__)


def generate_schedule(
    body: ScheduleGenerateRequest,
    planner: Optional[PlannerAgent] = None
) -> Schedule:
    """
    Normalize the caller's request, optionally ask the planner for a proposal,
    and allocate the schedule.

    The request is validated before the planner is called so an invalid
    request never costs a model call.
    """
    request = body.to_schedule_request()
    validate_request(request)

    proposal = None
    if body.use_ai and planner is not None:
        start_time = time.time()
        proposal = planner.propose_sessions(request)
        duration_ms = (time.time() - start_time) * 1000
        topic_label = ", ".join(t.name for t in request.topics[:3])
        log_ai_request("planner_agent", topic_label, duration_ms, body.user_id)
    elif body.use_ai:
        logger.info("AI scheduling requested but no planner is configured")

    return allocate(request, proposal)
