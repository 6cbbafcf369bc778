"""Turn execution: post a message, run the assistant, poll, fetch the reply.

A turn goes through these run states::

    created -> polling(attempt) -> completed | failed | timed_out

``failed`` covers the upstream ``failed``, ``cancelled`` and ``expired``
statuses. Any status the client does not recognise keeps the poller going
until the attempt budget runs out.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from .core import RUN_COMPLETED, RUN_FAILURE_STATUSES, Failure, Outcome, Persona, Success, Turn
from .errors import RunFailedError, RunTimeoutError, UnexpectedReplyError
from .gateway import AssistantGateway
from .session import ChatSession

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5  # seconds between status checks
MAX_POLL_ATTEMPTS = 60  # ~30 seconds total
NO_RESPONSE_TEXT = "Sem resposta"

Sleep = Callable[[float], Awaitable[None]]

# Statuses the gateway documents as pre-terminal; others are still polled but logged.
KNOWN_PENDING_STATUSES = frozenset({"queued", "in_progress", "requires_action", "cancelling"})


class RunState(str, Enum):
    CREATED = "created"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class RunPoller:
    """Polls one run until it reaches a terminal state or the budget is spent."""

    def __init__(
        self,
        gateway: AssistantGateway,
        thread_id: str,
        run_id: str,
        *,
        interval: float = POLL_INTERVAL,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        sleep: Sleep = asyncio.sleep,
    ):
        self._gateway = gateway
        self.thread_id = thread_id
        self.run_id = run_id
        self.interval = interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self.state = RunState.CREATED
        self.attempts = 0
        self.last_status: str | None = None
        self._warned_statuses: set[str] = set()

    async def step(self) -> RunState:
        """Wait one interval, fetch the run status once and advance the state."""
        if self.state not in (RunState.CREATED, RunState.POLLING):
            return self.state

        self.state = RunState.POLLING
        await self._sleep(self.interval)
        data = await self._gateway.get_run(self.thread_id, self.run_id)
        self.attempts += 1
        status = data.get("status")
        self.last_status = status
        logger.debug("Run %s attempt %d: %s", self.run_id, self.attempts, status)

        if status == RUN_COMPLETED:
            self.state = RunState.COMPLETED
        elif status in RUN_FAILURE_STATUSES:
            self.state = RunState.FAILED
        else:
            if status not in KNOWN_PENDING_STATUSES and status not in self._warned_statuses:
                self._warned_statuses.add(status)
                logger.warning("Run %s reported unrecognised status %r; still polling", self.run_id, status)
            if self.attempts >= self.max_attempts:
                self.state = RunState.TIMED_OUT
        return self.state

    async def wait(self) -> None:
        """Poll until the run completes.

        Raises:
            RunFailedError: the run ended as failed, cancelled or expired
            RunTimeoutError: the attempt budget ran out first
            GatewayError: a status request failed
        """
        while self.state in (RunState.CREATED, RunState.POLLING):
            await self.step()

        if self.state is RunState.FAILED:
            raise RunFailedError(self.last_status)
        if self.state is RunState.TIMED_OUT:
            raise RunTimeoutError(self.attempts)


class TurnExecutor:
    """Drives conversational turns for one persona against a gateway."""

    def __init__(
        self,
        gateway: AssistantGateway,
        persona: Persona,
        *,
        poll_interval: float = POLL_INTERVAL,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        sleep: Sleep = asyncio.sleep,
    ):
        self.gateway = gateway
        self.persona = persona
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def execute(self, session: ChatSession, text: str) -> Outcome | None:
        """Run one turn and record it in the session log.

        Returns ``None`` without touching the log or the network when the text
        is blank, the session has no thread yet, or a turn is already in
        flight. Otherwise exactly two turns are appended (user, then assistant
        reply or error text) and no exception escapes.
        """
        thread_id = session.thread_id
        if not text or not text.strip():
            logger.debug("Ignoring empty message")
            return None
        if thread_id is None:
            logger.debug("Ignoring message: session %s has no thread", session.id)
            return None
        if session.in_flight:
            logger.debug("Ignoring message: session %s already has a turn in flight", session.id)
            return None

        session.log.append(Turn.user(text))
        session.in_flight = True
        try:
            reply = await self._run_turn(thread_id, text)
        except Exception as e:
            logger.error("Assistant error on thread %s: %s", thread_id, e, exc_info=e)
            session.log.append(Turn.assistant(self.persona.error_text))
            return Failure(reason=str(e))
        finally:
            session.in_flight = False

        session.log.append(Turn.assistant(reply))
        return Success(text=reply)

    async def _run_turn(self, thread_id: str, text: str) -> str:
        await self.gateway.add_message(thread_id, text)

        run = await self.gateway.create_run(thread_id, self.persona.assistant_id)
        run_id = run.get("id")
        if not run_id:
            raise RunFailedError(run.get("status") or "missing id")

        poller = RunPoller(
            self.gateway,
            thread_id,
            run_id,
            interval=self.poll_interval,
            max_attempts=self.max_attempts,
            sleep=self._sleep,
        )
        await poller.wait()

        messages = await self.gateway.list_messages(thread_id)
        return extract_reply(messages)


def extract_reply(messages: dict) -> str:
    """Return the text of the most recent message, which must be the assistant's."""
    data = messages.get("data") or []
    latest = data[0] if data else None
    role = latest.get("role") if isinstance(latest, dict) else None
    if role != "assistant":
        raise UnexpectedReplyError(role)

    for block in latest.get("content") or []:
        text = block.get("text") if isinstance(block, dict) else None
        if isinstance(text, dict) and text.get("value"):
            return text["value"]
    return NO_RESPONSE_TEXT
