"""
Errors raised by the issue lifecycle services.

All of them are local validation failures returned synchronously to the
caller. None is retried internally; retry policy, if any, belongs to the
calling application.
"""


class IssueServiceError(Exception):
    """Base class for lifecycle service errors."""
    pass


class NotFound(IssueServiceError):
    """Raised when a referenced issue or entity does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidTransition(IssueServiceError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move issue from '{current}' to '{requested}'")


class IssueClosed(IssueServiceError):
    """Raised when an operation forbids mutating a closed issue."""

    def __init__(self, issue_id):
        self.issue_id = issue_id
        super().__init__(f"Issue {issue_id} is closed")


class UnknownAssignee(IssueServiceError):
    """Raised when the target user does not exist or is inactive."""

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"User {user_id} does not exist or is inactive")


class EmptyContent(IssueServiceError):
    """Raised when comment content is empty after trimming."""

    def __init__(self):
        super().__init__("Comment content must not be empty")


class InvalidClassification(IssueServiceError):
    """Raised when a type/sub-type pair is not in the catalog."""

    def __init__(self, type_id: str, sub_type_id):
        self.type_id = type_id
        self.sub_type_id = sub_type_id
        super().__init__(f"Unknown issue classification {type_id!r}/{sub_type_id!r}")


class InvalidPriority(IssueServiceError):
    """Raised for a priority outside low/medium/high/critical/urgent."""

    def __init__(self, priority: str):
        self.priority = priority
        super().__init__(f"Unknown priority {priority!r}")


class FeedbackNotAllowed(IssueServiceError):
    """Raised when a user leaves feedback on an issue they did not raise."""
    pass


class InvalidFeedback(IssueServiceError):
    """Raised for a blank feedback option or an unknown sentiment."""
    pass


class DataIntegrityError(IssueServiceError):
    """Raised when stored timestamps are missing or malformed."""
    pass


class StoreUnavailable(IssueServiceError):
    """Raised when the backing store cannot be reached. Never retried."""
    pass
