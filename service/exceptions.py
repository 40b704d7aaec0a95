"""
Exceptions raised by the scheduling engine.

Only two conditions are exceptional: the heuristic finding no slot, and an
interaction session being driven through an illegal transition. Everything
else (invalid schedules, rejected drops) is reported as a value.
"""


class SchedulingError(Exception):
    """Base class for scheduling engine errors."""


class NoAvailableSlotError(SchedulingError):
    """No free window of the required duration exists for a participant."""

    def __init__(self, participant_id: str, duration: int):
        self.participant_id = participant_id
        self.duration = duration
        super().__init__(
            f"No available {duration}-minute slot for participant {participant_id}"
        )


class InvalidTransitionError(SchedulingError):
    """An interaction session action was called from the wrong state."""

    def __init__(self, action: str, state: str):
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} while in state {state}")
