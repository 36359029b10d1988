"""Text-completion oracle via Ollama REST API."""

from typing import Any, Protocol

from inventory_voice.errors import ConfigurationError, OracleMalformedError, OracleUnavailableError
from inventory_voice.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "qwen3-coder-next"


class TextOracle(Protocol):
    """
    Opaque prompt-in, text-out completion service.

    Implementations raise OracleUnavailableError on transport failures and
    OracleMalformedError (reason: empty, truncated, unparseable) on bad answers.
    """

    def complete(self, prompt: str) -> str: ...


class OllamaOracle:
    """Completion via Ollama (local or cloud) ``/api/chat``, no streaming."""

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_BASE_URL,
        model: str = DEFAULT_OLLAMA_MODEL,
        timeout_seconds: float = 30.0,
        temperature: float = 0.7,
    ):
        if not base_url.startswith(("http://", "https://")):
            raise ConfigurationError("Oracle base URL must be http(s)", context={"base_url": base_url})
        if not model.strip():
            raise ConfigurationError("Oracle model name is empty")
        self.base_url = base_url
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self._client: Any | None = None

    def _load_client(self) -> Any:
        """Load httpx client lazily."""
        if self._client is not None:
            return self._client
        import httpx

        self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout_seconds)
        return self._client

    def complete(self, prompt: str) -> str:
        """
        Send ``prompt`` as a single user message and return the answer text.

        Raises:
            OracleUnavailableError: connection error, timeout or HTTP error status
            OracleMalformedError: empty, truncated or non-JSON answer
        """
        try:
            client = self._load_client()
            response = client.post(
                "/api/chat",
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "stream": False,
                    "options": {"temperature": self.temperature},
                },
            )
            response.raise_for_status()
        except Exception as e:
            logger.warning("oracle_request_failed", error_type=type(e).__name__, error=str(e)[:200])
            raise OracleUnavailableError(
                f"Oracle request failed: {type(e).__name__}",
                provider="ollama",
                context={"model": self.model, "error_type": type(e).__name__},
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            raise OracleMalformedError(
                "Oracle returned a non-JSON body", reason="unparseable"
            ) from e
        if not isinstance(data, dict):
            raise OracleMalformedError("Oracle returned an unexpected payload", reason="unparseable")

        message = data.get("message")
        answer = message.get("content", "") if isinstance(message, dict) else ""
        if data.get("done_reason") == "length":
            raise OracleMalformedError("Oracle answer was cut off", reason="truncated")
        if not isinstance(answer, str) or not answer.strip():
            raise OracleMalformedError("Oracle returned an empty answer", reason="empty")

        logger.debug(
            "oracle_completed",
            model=self.model,
            total_duration=data.get("total_duration"),
            eval_count=data.get("eval_count"),
        )
        return answer

    def health_check(self) -> bool:
        """Check if Ollama is reachable."""
        try:
            resp = self._load_client().get("/api/tags")
            return int(getattr(resp, "status_code", 0)) == 200
        except Exception:
            return False
