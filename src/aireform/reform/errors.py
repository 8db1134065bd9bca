"""Exceptions raised by the configuration commands and the reform workflow."""


class ReformError(Exception):
    """Base class for every error raised by AIreform itself."""


class ValidationError(ReformError):
    """Malformed admin input; the message is safe to show to the user."""


class ApprovalSessionActiveError(ReformError):
    """A reform approval is already pending for the guild."""


class ApprovalRejected(ReformError):
    """The approvers did not approve the reform."""


class ApprovalTimeout(ApprovalRejected):
    """The approval window closed before quorum was reached."""


class SchedulerBusyError(ReformError):
    """A reform job is already queued or running for the guild."""


class PlannerResponseInvalid(ReformError):
    """The planner's completion is not JSON or does not describe any structure."""


class MutationError(ReformError):
    """A single create, delete, move or permission call failed on the live server."""

    def __init__(self, stage: str, name: str, cause: BaseException) -> None:
        super().__init__(f"{stage} '{name}' failed: {cause}")
        self.stage = stage
        self.name = name
        self.cause = cause
