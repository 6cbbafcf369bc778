"""Gateway construction from the current configuration."""

from ..config import DEFAULT_BASE_URL, get_base_url, load_api_key
from ..errors import ConfigurationError
from ..gateway import AssistantGateway
from .openai import OpenAIGateway


def get_gateway() -> AssistantGateway:
    """Build the assistant gateway for the configured base URL.

    An API key is mandatory when talking to OpenAI directly. A custom base
    URL (typically another coopbrain proxy holding its own key) may be used
    without one.
    """
    api_key = load_api_key()
    base_url = get_base_url()
    if not api_key and base_url.rstrip("/") == DEFAULT_BASE_URL:
        raise ConfigurationError("OpenAI API key not configured")
    return OpenAIGateway(api_key=api_key, base_url=base_url)
