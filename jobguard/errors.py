class JobguardError(Exception):
    """Base class for errors raised by the scoring and rule code."""


class NotFoundError(JobguardError):
    """The requested company or rule does not exist."""


class InvalidInputError(JobguardError):
    """Submitted content cannot be evaluated (e.g. it is empty)."""
