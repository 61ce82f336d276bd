"""Scheduling errors.

Business logic errors raised by the schedule lifecycle. Routes translate
them into HTTP responses; they are never fatal to the process.
"""


class ScheduleError(Exception):
    """Base class for scheduling errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ScheduleNotFoundError(ScheduleError):
    """Raised when a workout or schedule does not exist or is not owned by the caller.

    Absent and not-owned are deliberately indistinguishable.
    """

    status_code = 404

    def __init__(self, message: str = "Schedule not found"):
        super().__init__(message)


class ScheduleConflictError(ScheduleError):
    """Raised when the requested time window overlaps another active schedule."""

    status_code = 409

    def __init__(
        self,
        conflicting_schedule_id: str,
        message: str = "Schedule conflict: Another workout is already scheduled at this time",
    ):
        self.conflicting_schedule_id = conflicting_schedule_id
        super().__init__(message)


class InvalidScheduleStateError(ScheduleError):
    """Raised when a transition is not allowed from the schedule's current status."""

    def __init__(self, message: str = "This workout has already been started or completed"):
        super().__init__(message)


class ScheduleValidationError(ScheduleError):
    """Raised when input reaching the core is malformed."""
