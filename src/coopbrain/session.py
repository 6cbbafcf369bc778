"""Per-surface conversation state: thread, log and in-flight flag."""

import logging
import uuid

from .core import Persona, Turn
from .errors import GatewayError
from .gateway import AssistantGateway

logger = logging.getLogger(__name__)


class ConversationLog:
    """Append-only, ordered sequence of turns.

    ``append`` swaps in a new tuple, so a snapshot taken from ``turns`` is
    never observed half-updated.
    """

    def __init__(self, turns: tuple[Turn, ...] = ()):
        self._turns = tuple(turns)

    def append(self, turn: Turn) -> None:
        self._turns = self._turns + (turn,)

    @property
    def turns(self) -> tuple[Turn, ...]:
        return self._turns

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self):
        return iter(self._turns)


class ThreadSession:
    """Holds the thread id of one chat surface.

    The id is obtained once and never replaced. A failed acquisition is
    logged and leaves the session without a thread; it is not retried.
    Pass ``thread_id`` to resume an existing thread.
    """

    def __init__(self, gateway: AssistantGateway, thread_id: str | None = None):
        self._gateway = gateway
        self._thread_id = thread_id

    @property
    def thread_id(self) -> str | None:
        return self._thread_id

    async def acquire(self) -> str | None:
        if self._thread_id is not None:
            return self._thread_id

        try:
            data = await self._gateway.create_thread()
        except GatewayError as e:
            logger.error("Error creating thread: %s", e)
            return None

        thread_id = data.get("id")
        if not thread_id:
            logger.error("Error creating thread: response carried no id")
            return None

        self._thread_id = thread_id
        logger.info("Thread created: %s", thread_id)
        return thread_id


class ChatSession:
    """State owned by one chat surface instance."""

    def __init__(self, persona: Persona, thread: ThreadSession, log: ConversationLog | None = None):
        self.id = uuid.uuid4().hex
        self.persona = persona
        self.thread = thread
        self.log = log if log is not None else ConversationLog()
        self.in_flight = False

    @classmethod
    async def open(
        cls,
        persona: Persona,
        gateway: AssistantGateway,
        user_name: str | None = None,
    ) -> "ChatSession":
        """Start a surface: greet the user (when named) and acquire a thread."""
        log = ConversationLog()
        if user_name:
            log.append(Turn.assistant(persona.greeting(user_name)))
        session = cls(persona, ThreadSession(gateway), log)
        await session.thread.acquire()
        return session

    @property
    def thread_id(self) -> str | None:
        return self.thread.thread_id

    @property
    def connected(self) -> bool:
        return self.thread_id is not None
