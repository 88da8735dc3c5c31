class StudyCalendarError(Exception):
    """Base class for errors raised by the scheduling services."""


class NotFoundError(StudyCalendarError, LookupError):
    """A user, study plan or topic needed by an operation does not exist."""

    def __init__(self, resource: str, identifier: object) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found")
