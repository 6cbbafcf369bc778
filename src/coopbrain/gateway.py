"""Abstract base class for assistant gateways."""

from abc import ABC, abstractmethod


class AssistantGateway(ABC):
    """Base class for hosted assistant APIs.

    Each backend implements the five thread operations the chat client
    depends on. Responses are returned as the decoded JSON bodies so the
    proxy routes can forward them verbatim. Any non-2xx answer or transport
    failure is raised as ``GatewayError``.
    """

    name: str  # "openai"

    @abstractmethod
    async def create_thread(self) -> dict:
        """Create a conversation thread. The result carries its ``id``."""
        ...

    @abstractmethod
    async def add_message(self, thread_id: str, content: str) -> dict:
        """Append a user message to a thread."""
        ...

    @abstractmethod
    async def create_run(self, thread_id: str, assistant_id: str) -> dict:
        """Start an assistant run on a thread. The result carries ``id`` and ``status``."""
        ...

    @abstractmethod
    async def get_run(self, thread_id: str, run_id: str) -> dict:
        """Return the current state of a run, including its ``status``."""
        ...

    @abstractmethod
    async def list_messages(self, thread_id: str) -> dict:
        """Return the thread's messages, most recent first, under ``data``."""
        ...

    async def aclose(self) -> None:
        """Release any network resources held by the gateway."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
