"""
Completion API Connectivity Check.

Operational helper: sends one small prompt to the completion API and
explains the most common failures.
"""

from dataclasses import dataclass
from typing import Optional

from watchlist_notifier.config import settings
from watchlist_notifier.core.exceptions import CompletionError
from watchlist_notifier.infrastructure.http import CompletionClient
from watchlist_notifier.services.prompts import (
    WELCOME_CHECK_PROMPT,
    WELCOME_CHECK_SYSTEM_PROMPT,
)


# USD per 1K tokens
PROMPT_TOKEN_PRICE = 0.0015
COMPLETION_TOKEN_PRICE = 0.002

HINT_MISSING_KEY = "OPENAI_API_KEY not found in environment variables. Get your API key at https://platform.openai.com/api-keys"
HINT_UNAUTHORIZED = "401 Unauthorized - your API key is invalid or expired."
HINT_PAYMENT_REQUIRED = "402 Payment Required - add credits to your account."
HINT_RATE_LIMITED = "429 Rate Limit - you've exceeded your quota or rate limit."
HINT_INSUFFICIENT_QUOTA = "Insufficient quota - add credits to your OpenAI account."
HINT_REQUEST_FAILED = (
    "Request failed - check your internet connection, your API key, "
    "your account credits and any firewall blocking the API."
)


@dataclass(frozen=True)
class CompletionCheckResult:
    """Outcome of the connectivity check."""
    ok: bool
    status_code: Optional[int] = None
    text: Optional[str] = None
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float = 0.0
    hint: Optional[str] = None
    error: Optional[str] = None


def estimate_cost(prompt_tokens: int, completion_tokens: int) -> float:
    return (prompt_tokens / 1000) * PROMPT_TOKEN_PRICE + (completion_tokens / 1000) * COMPLETION_TOKEN_PRICE


def hint_for_error(error: CompletionError) -> str:
    """Map a completion failure to an actionable hint."""
    if error.status_code == 401:
        return HINT_UNAUTHORIZED
    if error.status_code == 402:
        return HINT_PAYMENT_REQUIRED
    if error.error_code == "insufficient_quota":
        return HINT_INSUFFICIENT_QUOTA
    if error.status_code == 429:
        return HINT_RATE_LIMITED
    return HINT_REQUEST_FAILED


def check_completion_api(client: Optional[CompletionClient] = None) -> CompletionCheckResult:
    """
    Send a short welcome-message prompt and report what happened.

    Never raises for API failures; they are described in the result.
    """
    client = client or CompletionClient()

    if not client.is_configured:
        return CompletionCheckResult(ok=False, hint=HINT_MISSING_KEY, error="missing_api_key")

    try:
        result = client.complete(
            WELCOME_CHECK_PROMPT,
            system=WELCOME_CHECK_SYSTEM_PROMPT.format(app_name=settings.mail.app_name),
            max_tokens=200,
            temperature=0.7,
        )
    except CompletionError as e:
        return CompletionCheckResult(
            ok=False,
            status_code=e.status_code,
            hint=hint_for_error(e),
            error=e.message,
        )

    return CompletionCheckResult(
        ok=True,
        status_code=200,
        text=result.text,
        prompt_tokens=result.prompt_tokens,
        completion_tokens=result.completion_tokens,
        total_tokens=result.total_tokens,
        estimated_cost_usd=estimate_cost(result.prompt_tokens, result.completion_tokens),
    )
