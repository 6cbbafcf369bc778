"""Core data models for coopbrain."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Union


# Run statuses reported by the assistant gateway
RUN_COMPLETED = "completed"
RUN_FAILURE_STATUSES = frozenset({"failed", "cancelled", "expired"})


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    """A single entry in a conversation log."""

    role: str  # "user" | "assistant"
    content: str
    id: str = field(default_factory=_new_id)
    created: datetime = field(default_factory=_now)

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "Turn":
        return cls(role="assistant", content=content)


@dataclass(frozen=True)
class Success:
    """A turn that produced an assistant reply."""

    text: str


@dataclass(frozen=True)
class Failure:
    """A turn that ended with the error text substituted for a reply."""

    reason: str


Outcome = Union[Success, Failure]


@dataclass(frozen=True)
class Persona:
    """Configuration of one chat surface."""

    name: str  # "chat" | "negotiator"
    title: str
    assistant_id: str
    welcome: str  # may contain {user_name}
    error_text: str
    quick_actions: dict[str, str] = field(default_factory=dict)  # label -> prompt

    def greeting(self, user_name: str) -> str:
        return self.welcome.format(user_name=user_name)
