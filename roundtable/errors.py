"""Exception hierarchy for the discussion engine.

Validation errors are raised before any generation call is made. Lifecycle errors
mean the caller acted on stale session state. Generation errors are only raised for
aggregate calls (report, topics); per-role failures never escape the engine.
"""


class DiscussionError(Exception):
    """Base class for all discussion engine errors."""


class DiscussionValidationError(DiscussionError):
    """Raised when caller input is rejected."""


class InvalidRoleCount(DiscussionValidationError):
    def __init__(self, count: int, minimum: int, maximum: int) -> None:
        self.count = count
        super().__init__(f"A discussion needs {minimum}-{maximum} roles, got {count}")


class InvalidInterventionLength(DiscussionValidationError):
    def __init__(self, length: int, minimum: int, maximum: int) -> None:
        self.length = length
        super().__init__(f"Intervention must be {minimum}-{maximum} characters, got {length}")


class NoTargetRoles(DiscussionValidationError):
    def __init__(self) -> None:
        super().__init__("Intervention must target at least one participating role")


class UnsafeInput(DiscussionValidationError):
    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        super().__init__(f"Intervention rejected: matched unsafe pattern {pattern!r}")


class InvalidEnthusiasmLevel(DiscussionValidationError):
    def __init__(self, level: int) -> None:
        self.level = level
        super().__init__(f"Enthusiasm level must be between 1 and 5, got {level}")


class UnknownRole(DiscussionValidationError):
    def __init__(self, role_id: str) -> None:
        self.role_id = role_id
        super().__init__(f"Role '{role_id}' is not part of this session")


class UnknownStyle(DiscussionValidationError):
    def __init__(self, style_ids: list[str]) -> None:
        self.style_ids = style_ids
        super().__init__(f"Unknown style(s): {', '.join(style_ids)}")


class ConflictingStyles(DiscussionValidationError):
    def __init__(self, category: str, style_ids: list[str]) -> None:
        self.category = category
        self.style_ids = style_ids
        super().__init__(f"Only one '{category}' style per role, got {', '.join(style_ids)}")


class LifecycleError(DiscussionError):
    """Raised when an operation is not allowed in the session's current state."""


class SessionNotActive(LifecycleError):
    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__(f"Session is not active (status: {status})")


class NotAwaitingInput(LifecycleError):
    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__(f"Session is not awaiting user input (status: {status})")


class TurnBudgetExhausted(LifecycleError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Maximum number of turns reached ({limit})")


class InterventionBudgetExhausted(LifecycleError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Maximum number of user interventions reached ({limit})")


class GenerationError(DiscussionError):
    """Raised when an aggregate generation call fails."""


class ReportGenerationError(GenerationError):
    pass


class TopicGenerationError(GenerationError):
    pass
