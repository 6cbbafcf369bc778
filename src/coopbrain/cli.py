"""CLI entry point for coopbrain."""

import asyncio
import logging

import click
import uvicorn

from .backends import get_gateway
from .config import get_credentials_path, load_api_key, remove_api_key, save_api_key
from .errors import ConfigurationError
from .executor import TurnExecutor
from .personas import DEFAULT_USER_NAME, get_persona, get_personas
from .session import ChatSession


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """Chat with the cooperative's assistants through the OpenAI Assistants API."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--port", default=3001, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the web interface and API proxy."""
    if not load_api_key():
        click.echo("Warning: OPENAI_API_KEY is not configured; proxy calls will fail.", err=True)
    click.echo(f"Starting coopbrain on http://{host}:{port}")
    uvicorn.run("coopbrain.server:app", host=host, port=port, reload=False)


@main.command()
@click.option(
    "--persona",
    type=click.Choice([p.name for p in get_personas()]),
    default="chat",
    show_default=True,
    help="Which assistant to talk to.",
)
@click.option("--user-name", default=DEFAULT_USER_NAME, help="Name used in the greeting.")
def chat(persona: str, user_name: str):
    """Chat with an assistant in the terminal. Send an empty line to quit."""
    try:
        asyncio.run(_chat_loop(persona, user_name))
    except ConfigurationError as e:
        raise click.ClickException(str(e))


async def _chat_loop(persona_name: str, user_name: str) -> None:
    persona = get_persona(persona_name)
    async with get_gateway() as gateway:
        session = await ChatSession.open(persona, gateway, user_name=user_name)
        for turn in session.log:
            click.echo(turn.content)
        if not session.connected:
            raise click.ClickException("Could not create a conversation thread.")

        for label, prompt in persona.quick_actions.items():
            click.echo(f"  /{label}: {prompt}")

        executor = TurnExecutor(gateway, persona)
        while True:
            text = await asyncio.to_thread(click.prompt, "Você", default="", show_default=False)
            if not text.strip():
                break
            if text.startswith("/") and text[1:] in persona.quick_actions:
                text = persona.quick_actions[text[1:]]
            await executor.execute(session, text)
            click.echo(f"\n{session.log.turns[-1].content}\n")


@main.group()
def key():
    """Manage the stored OpenAI API key."""


@key.command("set")
@click.argument("api_key")
def key_set(api_key: str):
    """Store an API key for later runs."""
    try:
        path = save_api_key(api_key)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    click.echo(f"API key saved to {path}")


@key.command("remove")
def key_remove():
    """Delete the stored API key."""
    if remove_api_key():
        click.echo("API key removed")
    else:
        click.echo("No stored API key")


@key.command("status")
def key_status():
    """Show whether an API key is available."""
    if load_api_key():
        click.echo("API key configured")
    else:
        click.echo(f"No API key configured (set OPENAI_API_KEY or run 'coopbrain key set'; file: {get_credentials_path()})")
