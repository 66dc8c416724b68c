import logging
from openai import OpenAI, APIConnectionError, APIStatusError, APITimeoutError
from app.services.constants import (
    GENERATION_TIMEOUT,
    OLLAMA_BASE_URL,
    OLLAMA_MODEL,
    USER_ROLE,
)


logger = logging.getLogger(__name__)


class GenerationServiceError(RuntimeError):
    """Raised when the generation backend cannot produce a completion."""


def get_ollama_client(timeout: float = GENERATION_TIMEOUT) -> OpenAI:
    """ Returns an OpenAI-compatible client pointed at the local Ollama server """
    # Ollama ignores the key but the client requires one
    return OpenAI(
        api_key="ollama",
        base_url=OLLAMA_BASE_URL,
        timeout=timeout,
        max_retries=0,
    )


def get_reply_from_model(
    prompt: str,
    json_mode: bool = False,
    timeout: float = GENERATION_TIMEOUT,
    model_name: str = OLLAMA_MODEL,
) -> str:
    """
    Main entrypoint to retrieve a reply from the generation backend.

    Args:
        prompt (str): The full instruction, including the document text.
        json_mode (bool): Ask the backend to constrain its output to JSON.
        timeout (float): Seconds to wait before giving up. There are no retries.
        model_name (str): The Ollama model tag to use.

    Returns:
        str: The raw reply from the model.

    Raises:
        GenerationServiceError: on timeout, connection failure, an error status
        from the backend or an empty completion.
    """
    client = get_ollama_client(timeout)

    request = {
        "model": model_name,
        "messages": [{"role": USER_ROLE, "content": prompt}],
    }
    if json_mode:
        request["response_format"] = {"type": "json_object"}

    try:
        response = client.chat.completions.create(**request)
    except APITimeoutError as e:
        logger.error(f"Generation backend timed out after {timeout}s: {e}")
        raise GenerationServiceError("Failed to communicate with Ollama") from e
    except APIConnectionError as e:
        logger.error(f"Could not reach generation backend at {OLLAMA_BASE_URL}: {e}")
        raise GenerationServiceError("Failed to communicate with Ollama") from e
    except APIStatusError as e:
        logger.error(
            f"Generation backend returned {e.status_code} for model {model_name}: {e.message}"
        )
        raise GenerationServiceError("Failed to communicate with Ollama") from e

    # Validate response structure before accessing
    if not response.choices or not response.choices[0].message:
        logger.error(f"Incomplete response received from model {model_name}")
        raise GenerationServiceError("Incomplete response received from LLM service.")

    reply = response.choices[0].message.content or ""
    logger.info(f"Received {len(reply)} characters from model {model_name}")
    return reply
