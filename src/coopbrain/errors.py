"""Exception hierarchy for coopbrain."""


class CoopBrainError(Exception):
    """Base class for every error raised by coopbrain."""


class ConfigurationError(CoopBrainError):
    """Missing or invalid configuration, e.g. no API key."""


class GatewayError(CoopBrainError):
    """The assistant gateway answered with a non-2xx status or was unreachable."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class TurnError(CoopBrainError):
    """A turn failed locally after the gateway calls themselves succeeded."""


class RunFailedError(TurnError):
    """The run reached a terminal failure status."""

    def __init__(self, status: str):
        super().__init__(f"Run {status}")
        self.status = status


class RunTimeoutError(TurnError):
    """The poll budget was exhausted before the run reached a terminal status."""

    def __init__(self, attempts: int):
        super().__init__(f"Assistant timeout after {attempts} attempts")
        self.attempts = attempts


class UnexpectedReplyError(TurnError):
    """The most recent thread message is missing or not from the assistant."""

    def __init__(self, role: str | None):
        super().__init__(f"Latest message role is {role!r}, expected 'assistant'")
        self.role = role
