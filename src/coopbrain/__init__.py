"""Web chat client for the cooperative's OpenAI assistants."""

__version__ = "0.1.0"
