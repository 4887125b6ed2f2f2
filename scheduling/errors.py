from typing import List, Optional


class InvalidRequest(ValueError):
    """Scheduling parameters that cannot produce any schedule."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.problems = problems or [message]


class ProposalUnavailable(Exception):
    """The planner agent could not produce a session proposal."""
