"""Exceptions raised while turning a query into a command."""


class HowError(Exception):
    """Base class for all errors reported to the user."""


class UsageError(HowError):
    """The command line was missing something required, such as the query."""


class TransportError(HowError):
    """The model service could not be reached, rejected the credentials or rate-limited us."""


class MalformedResponseError(HowError):
    """The model answered, but not with the JSON object it was asked for."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ExecutorFault(HowError):
    """The shell used to run commands could not be started."""


class AttemptsExceeded(HowError):
    """The command kept failing until the attempt limit was reached."""

    def __init__(self, attempts: int):
        super().__init__(f"Giving up after {attempts} attempts without a working command.")
        self.attempts = attempts
