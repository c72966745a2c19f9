"""
Chat Completion API Client.

Talks to an OpenAI-compatible chat completions endpoint. Used to turn
the selected articles into the HTML body of the daily digest, and by the
connectivity check.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from watchlist_notifier.config import settings
from watchlist_notifier.core.exceptions import (
    CompletionError,
    CompletionRequestRejectedError,
    ConfigurationError,
    is_request_rejection,
)
from watchlist_notifier.infrastructure.circuit_breaker import (
    CircuitBreakerConfig,
    CircuitBreakerOpenError,
    get_circuit_breaker,
)
from watchlist_notifier.infrastructure.logging import get_logger, log_duration
from watchlist_notifier.infrastructure.metrics import get_metrics


logger = get_logger(__name__)


@dataclass(frozen=True)
class CompletionResult:
    """Generated text and token usage."""
    text: str
    model: Optional[str] = None
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> "CompletionResult":
        """
        Create from a chat completions response.

        Raises:
            CompletionError: If the response carries no message content.
        """
        choices = data.get("choices") or []
        message = (choices[0].get("message") or {}) if choices else {}
        content = message.get("content")

        if not isinstance(content, str) or not content.strip():
            raise CompletionError("Completion response has no message content")

        usage = data.get("usage") or {}
        return cls(
            text=content.strip(),
            model=data.get("model"),
            prompt_tokens=int(usage.get("prompt_tokens") or 0),
            completion_tokens=int(usage.get("completion_tokens") or 0),
            total_tokens=int(usage.get("total_tokens") or 0),
        )


def _provider_error(response: requests.Response) -> Dict[str, Any]:
    """Extract the provider's {"error": {...}} object, if any."""
    try:
        body = response.json()
    except ValueError:
        return {}
    error = body.get("error") if isinstance(body, dict) else None
    return error if isinstance(error, dict) else {}


class CompletionClient:
    """Client for an OpenAI-compatible chat completions API."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self._api_url = api_url or settings.completion.api_url
        self._api_key = api_key if api_key is not None else settings.completion.api_key
        self._model = model or settings.completion.model
        self._timeout = timeout or settings.completion.timeout_seconds
        self._session: Optional[requests.Session] = None
        self._breaker = get_circuit_breaker(
            "completion",
            CircuitBreakerConfig(
                failure_threshold=3,
                timeout_seconds=60.0,
                excluded_exceptions=(CompletionRequestRejectedError,),
            ),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_url and self._api_key)

    @property
    def model(self) -> str:
        return self._model

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retry logic."""
        if self._session is None:
            self._session = requests.Session()

            retry_strategy = Retry(
                total=2,
                backoff_factor=1.0,
                status_forcelist=[502, 503, 504],
                allowed_methods=["POST"],
            )

            adapter = HTTPAdapter(
                max_retries=retry_strategy,
                pool_connections=5,
                pool_maxsize=5,
            )

            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

            self._session.headers.update({
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            })

        return self._session

    @log_duration("completion_request")
    def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 1500,
        temperature: float = 0.7,
    ) -> CompletionResult:
        """
        Generate a completion for a single user prompt.

        Args:
            prompt: User message.
            system: Optional system message.
            max_tokens: Completion token limit.
            temperature: Sampling temperature.

        Returns:
            CompletionResult with the generated text.

        Raises:
            ConfigurationError: If no API key is configured.
            CompletionError: If the request fails.
        """
        if not self.is_configured:
            raise ConfigurationError("OPENAI_API_KEY")

        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self._model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            return self._breaker.call(self._do_complete, payload)
        except CircuitBreakerOpenError as e:
            get_metrics().external_requests_total.inc(service="completion", status="rejected")
            raise CompletionError(str(e)) from e

    def _do_complete(self, payload: Dict[str, Any]) -> CompletionResult:
        try:
            response = self.session.post(
                self._api_url,
                json=payload,
                timeout=self._timeout,
            )
            response.raise_for_status()
            result = CompletionResult.from_api_response(response.json())

        except requests.exceptions.Timeout as e:
            get_metrics().external_requests_total.inc(service="completion", status="timeout")
            logger.error(
                "Completion API timeout",
                extra={"extra_fields": {"timeout": self._timeout, "model": self._model}}
            )
            raise CompletionError(f"Completion API timeout: {e}") from e

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code
            provider_error = _provider_error(e.response)
            get_metrics().external_requests_total.inc(service="completion", status="http_error")
            logger.error(
                f"Completion API HTTP error: {status_code}",
                extra={"extra_fields": {
                    "status_code": status_code,
                    "error_code": provider_error.get("code"),
                    "response_body": e.response.text[:500] if e.response.text else None,
                }}
            )
            error_class = (
                CompletionRequestRejectedError if is_request_rejection(status_code) else CompletionError
            )
            raise error_class(
                provider_error.get("message") or f"HTTP {status_code}",
                status_code=status_code,
                error_code=provider_error.get("code"),
            ) from e

        except requests.exceptions.RequestException as e:
            get_metrics().external_requests_total.inc(service="completion", status="error")
            logger.error(
                f"Completion API request failed: {e}",
                extra={"extra_fields": {"error_type": type(e).__name__}}
            )
            raise CompletionError(f"Completion API request failed: {e}") from e

        except ValueError as e:
            get_metrics().external_requests_total.inc(service="completion", status="error")
            raise CompletionError("Completion API returned invalid JSON") from e

        get_metrics().external_requests_total.inc(service="completion", status="success")
        logger.info(
            "Completion generated",
            extra={"extra_fields": {
                "model": result.model or self._model,
                "usage_prompt": result.prompt_tokens,
                "usage_completion": result.completion_tokens,
            }}
        )
        return result

    def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "CompletionClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# Global client instance
_completion_client: Optional[CompletionClient] = None


def get_completion_client() -> CompletionClient:
    """Get global completion client instance."""
    global _completion_client
    if _completion_client is None:
        _completion_client = CompletionClient()
    return _completion_client
