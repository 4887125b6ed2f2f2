import logging
from typing import Any, List, Optional
from langchain.chat_models import init_chat_model
from dotenv import load_dotenv
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.output_parsers import JsonOutputParser

from models.schedule_models import ScheduleProposal, ScheduleRequest
from scheduling.calendar_utils import day_count
from scheduling.errors import ProposalUnavailable
from utils.config import AIConfig


load_dotenv(override=True)

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class PlannerAgent:
    def __init__(self, model_name: str = AIConfig.MODEL_NAME):
        """
        Initialize the Planner Agent. The language model is created on first use.
        """
        self.model_name = model_name
        self._llm_model = None

    @property
    def llm_model(self):
        if self._llm_model is None:
            self._llm_model = init_chat_model(
                self.model_name,
                temperature=AIConfig.TEMPERATURE,
                max_retries=AIConfig.MAX_RETRIES,
            )
        return self._llm_model

    def generate_schedule_proposal(self, request: ScheduleRequest) -> List[Any]:
        """
        Asks the model for a day-by-day session list for the request.

        Args:
            request (ScheduleRequest): The scheduling parameters

        Returns:
            List[Any]: Raw session items as returned by the model. They are not
            validated here; the allocator checks each one.

        Raises:
            ProposalUnavailable: If the model output has no session list
        """
        parser = JsonOutputParser(pydantic_object=ScheduleProposal)
        format_instructions = parser.get_format_instructions()
        escaped_format_instructions = format_instructions.replace("{", "{{").replace("}", "}}")

        prompt_template = ChatPromptTemplate.from_messages([
            ("system",
             "You are an expert study planner who creates personalized study schedules. "
             "Your schedules respect the daily time budget and give high priority topics more time."),
            ("human",
             "Create a {days}-day study schedule from {start_date} to {end_date}.\n\n"
             "Topics (with priority):\n{topics}\n\n"
             "Requirements:\n"
             "- Number days from 1 (day 1 is {start_date})\n"
             "- Daily study time: at most {daily_minutes} minutes in total\n"
             "- Do not schedule anything on: {rest_days}\n"
             "- Every session needs a topic from the list and a duration in minutes\n\n"
             f"Format your response according to this schema:\n{escaped_format_instructions}")
        ])

        rest_days = ", ".join(WEEKDAY_NAMES[d] for d in sorted(request.rest_days) if 0 <= d <= 6)
        chain = prompt_template | self.llm_model | parser
        response = chain.invoke({
            "days": day_count(request.start_date, request.end_date),
            "start_date": request.start_date.isoformat(),
            "end_date": request.end_date.isoformat(),
            "topics": "\n".join(f"- {t.name} ({t.priority})" for t in request.topics),
            "daily_minutes": request.study_minutes_per_day,
            "rest_days": rest_days or "no rest days",
        })

        if isinstance(response, list):
            return response
        if isinstance(response, dict) and isinstance(response.get("sessions"), list):
            return response["sessions"]
        raise ProposalUnavailable(f"Unexpected planner output type: {type(response).__name__}")

    def propose_sessions(self, request: ScheduleRequest) -> Optional[List[Any]]:
        """Like generate_schedule_proposal, but returns None on any failure."""
        try:
            return self.generate_schedule_proposal(request)
        except Exception as e:
            logger.warning(f"Planner proposal failed, using fallback distribution: {type(e).__name__}: {e}")
            return None
