"""Export chat sessions to Markdown and JSON formats."""

import json

from .core import Turn
from .session import ChatSession


def session_to_markdown(session: ChatSession) -> str:
    """Export a session's conversation log as clean Markdown."""
    lines = [f"# {session.persona.title}", ""]

    lines.append(f"**Persona:** {session.persona.name}")
    if session.thread_id:
        lines.append(f"**Thread:** {session.thread_id}")
    lines.append(f"**Messages:** {len(session.log)}")
    lines.extend(["", "---", ""])

    for turn in session.log:
        role_label = turn.role.capitalize()
        ts = f" ({turn.created.strftime('%Y-%m-%d %H:%M')})"
        lines.append(f"## {role_label}{ts}")
        lines.append("")
        lines.append(turn.content)
        lines.extend(["", "---", ""])

    return "\n".join(lines)


def session_to_json(session: ChatSession) -> str:
    """Export a session and its conversation log as structured JSON."""
    data = {
        "session": {
            "id": session.id,
            "persona": session.persona.name,
            "title": session.persona.title,
            "thread_id": session.thread_id,
            "message_count": len(session.log),
        },
        "messages": [turn_to_dict(turn) for turn in session.log],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def turn_to_dict(turn: Turn) -> dict:
    """Convert a Turn to a JSON-serializable dict."""
    return {
        "id": turn.id,
        "role": turn.role,
        "content": turn.content,
        "created": turn.created.isoformat(),
    }
