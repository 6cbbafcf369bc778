"""Shared test fixtures for coopbrain."""

import asyncio

import pytest

from coopbrain.core import Persona
from coopbrain.errors import GatewayError
from coopbrain.gateway import AssistantGateway
from coopbrain.session import ChatSession, ThreadSession

ERROR_TEXT = "❌ Erro ao conectar com o assistente. Tente novamente."


def assistant_reply(text: str | None) -> dict:
    """Build a list-messages page whose latest entry is an assistant reply."""
    content = [] if text is None else [{"type": "text", "text": {"value": text, "annotations": []}}]
    return {
        "object": "list",
        "data": [
            {"id": "msg_2", "role": "assistant", "content": content},
            {"id": "msg_1", "role": "user", "content": [{"type": "text", "text": {"value": "Olá"}}]},
        ],
    }


class FakeGateway(AssistantGateway):
    """Scripted in-memory gateway that records every call.

    ``statuses`` are returned by successive ``get_run`` calls; the last one
    repeats once the script runs out. ``fail_on`` maps an operation name to
    the ``GatewayError`` it raises. When ``run_gate`` is set, ``get_run``
    blocks until the event fires.
    """

    name = "fake"

    def __init__(
        self,
        statuses=("completed",),
        messages: dict | None = None,
        fail_on: dict[str, Exception] | None = None,
        thread_id: str = "thread_abc",
    ):
        self.statuses = list(statuses)
        self.messages = messages if messages is not None else assistant_reply("Oi!")
        self.fail_on = fail_on or {}
        self.thread_id = thread_id
        self.run_gate: asyncio.Event | None = None
        self.calls: list[tuple] = []
        self.closed = False

    def _record(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        if op in self.fail_on:
            raise self.fail_on[op]

    def ops(self) -> list[str]:
        return [c[0] for c in self.calls]

    async def create_thread(self) -> dict:
        self._record("create_thread")
        return {"id": self.thread_id, "object": "thread"}

    async def add_message(self, thread_id: str, content: str) -> dict:
        self._record("add_message", thread_id, content)
        return {"id": "msg_1", "role": "user", "content": [{"type": "text", "text": {"value": content}}]}

    async def create_run(self, thread_id: str, assistant_id: str) -> dict:
        self._record("create_run", thread_id, assistant_id)
        return {"id": "run_1", "status": "queued", "assistant_id": assistant_id}

    async def get_run(self, thread_id: str, run_id: str) -> dict:
        if self.run_gate is not None:
            await self.run_gate.wait()
        self._record("get_run", thread_id, run_id)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return {"id": run_id, "status": status}

    async def list_messages(self, thread_id: str) -> dict:
        self._record("list_messages", thread_id)
        return self.messages

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Stands in for ``asyncio.sleep`` and records requested delays."""

    def __init__(self):
        self.sleeps: list[float] = []

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def persona():
    return Persona(
        name="chat",
        title="Assistente Inteligente",
        assistant_id="asst_test",
        welcome="Olá, {user_name}!",
        error_text=ERROR_TEXT,
    )


@pytest.fixture
def session(persona, fake_gateway):
    """A chat session that already holds a thread."""
    return ChatSession(persona, ThreadSession(fake_gateway, thread_id="thread_abc"))


@pytest.fixture
def isolated_credentials(tmp_path, monkeypatch):
    """Point credential storage at a temp file and clear the env key."""
    path = tmp_path / "coopbrain" / "api_key"
    monkeypatch.setenv("COOPBRAIN_CREDENTIALS_PATH", str(path))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)
    return path
