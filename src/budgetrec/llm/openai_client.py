from functools import lru_cache
from openai import OpenAI
from budgetrec.config import settings
from budgetrec.logging import logger


@lru_cache(maxsize=1)
def get_client() -> OpenAI:
    """
    Build the OpenAI client on first use.

    settings.OPENAI_API_KEY is a SecretStr loaded from .env; when it is unset
    the client falls back to the OPENAI_API_KEY environment variable.
    """
    api_key = settings.OPENAI_API_KEY.get_secret_value() if settings.OPENAI_API_KEY else None
    logger.debug("Creating OpenAI client")
    return OpenAI(api_key=api_key)


def get_chat_completion(messages: list, tools: list | None = None):
    """
    Call the chat model once. Returns the raw response so callers can read tool calls.
    """
    kwargs = {
        "model": settings.OPENAI_MODEL_AGENT,
        "messages": messages,
        "temperature": settings.OPENAI_TEMPERATURE,
    }
    if tools:
        kwargs["tools"] = tools

    try:
        return get_client().chat.completions.create(**kwargs)
    except Exception as e:
        logger.error(f"OpenAI Chat API call failed: {e}")
        raise
