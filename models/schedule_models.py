import datetime as dt
from collections import defaultdict
from typing import Dict, List, Literal, Optional, Tuple, FrozenSet, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from utils.config import ScheduleConfig

Priority = Literal["high", "medium", "low"]

PRIORITY_RANK: Dict[str, int] = {"high": 0, "medium": 1, "low": 2}


def _clean_label(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _reject_bool(value):
    if isinstance(value, bool):
        raise ValueError("must be a number, not a boolean")
    return value


class ApiModel(BaseModel):
    """Base for models on the HTTP surface: camelCase in and out."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Topic(BaseModel):
    name: str = Field(..., description="Label of the content to study.")
    priority: Priority = Field(default="medium", description="Priority tier: high, medium or low.")

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _clean_label(value)


class ScheduleRequest(BaseModel):
    """Scheduling parameters for a single allocation.

    Range checks (date order, positive budget, rest day indices, at least one
    topic) are done by the allocator so that they surface as InvalidRequest.
    """
    model_config = ConfigDict(frozen=True)

    start_date: dt.date
    end_date: dt.date
    study_minutes_per_day: int
    rest_days: FrozenSet[int] = frozenset()
    topics: Tuple[Topic, ...] = ()


class Session(ApiModel):
    date: dt.date = Field(..., description="Calendar date of the session.")
    topic: str = Field(..., description="The topic being studied.")
    duration_minutes: int = Field(..., gt=0, description="Length of the session in minutes.")
    priority: Priority = Field(default="medium", description="Priority of the source topic.")
    completed: bool = False


class ScheduleStats(ApiModel):
    total_minutes: int
    study_days: int
    session_count: int
    minutes_by_topic: Dict[str, int]


class Schedule(ApiModel):
    start_date: dt.date
    end_date: dt.date
    sessions: List[Session] = Field(default_factory=list)
    ai_generated: bool = Field(default=False, description="Whether any session came from the AI proposal.")
    fallback_days: int = Field(default=0, description="Study days filled by the deterministic distribution.")

    def sessions_on(self, day: dt.date) -> List[Session]:
        return [s for s in self.sessions if s.date == day]

    def minutes_on(self, day: dt.date) -> int:
        return sum(s.duration_minutes for s in self.sessions if s.date == day)

    def total_minutes(self) -> int:
        return sum(s.duration_minutes for s in self.sessions)

    def scheduled_dates(self) -> List[dt.date]:
        """Distinct session dates in schedule order."""
        seen: List[dt.date] = []
        for s in self.sessions:
            if not seen or seen[-1] != s.date:
                seen.append(s.date)
        return seen

    def minutes_by_topic(self) -> Dict[str, int]:
        totals: Dict[str, int] = defaultdict(int)
        for s in self.sessions:
            totals[s.topic] += s.duration_minutes
        return dict(totals)

    def summary(self) -> ScheduleStats:
        return ScheduleStats(
            total_minutes=self.total_minutes(),
            study_days=len(self.scheduled_dates()),
            session_count=len(self.sessions),
            minutes_by_topic=self.minutes_by_topic(),
        )


class RawSession(BaseModel):
    """One externally proposed session. Items failing validation are dropped."""
    day_number: int = Field(
        ..., ge=1,
        validation_alias=AliasChoices("day_number", "dayNumber", "day"),
        description="1-based day index counted from the start date."
    )
    topic: str = Field(..., description="The topic to study that day.")
    duration_minutes: int = Field(
        ..., gt=0,
        validation_alias=AliasChoices("duration_minutes", "durationMinutes", "duration"),
        description="Length of the session in minutes."
    )
    priority: Optional[str] = Field(default=None, description="Optional priority: high, medium or low.")

    @field_validator("topic")
    @classmethod
    def strip_topic(cls, value: str) -> str:
        return _clean_label(value)

    @field_validator("day_number", "duration_minutes", mode="before")
    @classmethod
    def no_booleans(cls, value):
        return _reject_bool(value)


class ScheduleProposal(BaseModel):
    sessions: List[RawSession] = Field(..., description="A list of proposed study sessions.")


class TopicInput(BaseModel):
    topic: str
    priority: Priority = "medium"


class ScheduleGenerateRequest(ApiModel):
    title: str = Field(
        default=ScheduleConfig.DEFAULT_TITLE, min_length=1, max_length=ScheduleConfig.MAX_TITLE_LENGTH
    )
    start_date: dt.date
    end_date: dt.date
    topics: List[Union[str, TopicInput]] = Field(..., min_length=1, max_length=ScheduleConfig.MAX_TOPICS)
    study_hours_per_day: int = Field(
        default=ScheduleConfig.DEFAULT_STUDY_HOURS_PER_DAY,
        ge=ScheduleConfig.MIN_STUDY_HOURS_PER_DAY,
        le=ScheduleConfig.MAX_STUDY_HOURS_PER_DAY
    )
    rest_days: List[int] = Field(default_factory=list, max_length=7)
    use_ai: bool = Field(default=True, alias="useAI")
    user_id: str = "anonymous"

    @field_validator("topics")
    @classmethod
    def check_topic_labels(cls, topics):
        for item in topics:
            label = item if isinstance(item, str) else item.topic
            if not label.strip() or len(label) > ScheduleConfig.MAX_TOPIC_LENGTH:
                raise ValueError(
                    f"Topic names must be 1-{ScheduleConfig.MAX_TOPIC_LENGTH} characters"
                )
        return topics

    @field_validator("rest_days")
    @classmethod
    def check_rest_days(cls, rest_days):
        if any(d < 0 or d > 6 for d in rest_days):
            raise ValueError("Rest days must be weekday numbers from 0 (Sunday) to 6 (Saturday)")
        return rest_days

    def normalized_topics(self) -> List[Topic]:
        """Bare strings become medium-priority topics."""
        result = []
        for item in self.topics:
            if isinstance(item, str):
                result.append(Topic(name=item))
            else:
                result.append(Topic(name=item.topic, priority=item.priority))
        return result

    def to_schedule_request(self) -> ScheduleRequest:
        return ScheduleRequest(
            start_date=self.start_date,
            end_date=self.end_date,
            study_minutes_per_day=self.study_hours_per_day * 60,
            rest_days=frozenset(self.rest_days),
            topics=tuple(self.normalized_topics()),
        )


class ScheduleResponse(Schedule):
    """Body returned by the generate endpoint."""
    title: str
    user_id: str
    stats: ScheduleStats
