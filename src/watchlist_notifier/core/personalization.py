"""
Welcome Message Personalization.

Builds the welcome email intro from the investor profile collected at
sign-up. Pure functions, no I/O.
"""

from typing import Dict, Optional


GOAL_MESSAGES: Dict[str, str] = {
    "Growth": "maximize long-term growth",
    "Income": "generate steady income",
    "Preservation": "preserve and protect your capital",
    "Balanced": "balance growth with stability",
}

RISK_MESSAGES: Dict[str, str] = {
    "Low": "conservative approach",
    "Medium": "balanced strategy",
    "High": "growth-focused mindset",
}

DEFAULT_GOAL_MESSAGE = "investment goals"
DEFAULT_RISK_MESSAGE = "investment approach"
DEFAULT_INDUSTRY = "the markets"

WELCOME_INTRO_TEMPLATE = (
    "Welcome to {app_name}! As an investor focused on {industry} with a "
    "{risk} to {goal}, you now have access to real-time market insights and "
    "smart investment tools. Track your watchlist, receive personalized "
    "alerts, and make confident decisions backed by data."
)


def goal_message(investment_goals: Optional[str]) -> str:
    """Phrase for an investment goal, falling back to a generic one."""
    return GOAL_MESSAGES.get(investment_goals or "", DEFAULT_GOAL_MESSAGE)


def risk_message(risk_tolerance: Optional[str]) -> str:
    """Phrase for a risk tolerance, falling back to a generic one."""
    return RISK_MESSAGES.get(risk_tolerance or "", DEFAULT_RISK_MESSAGE)


def build_welcome_intro(
    preferred_industry: Optional[str],
    investment_goals: Optional[str],
    risk_tolerance: Optional[str],
    app_name: str = "Signalist",
) -> str:
    """
    Build the personalized intro paragraph of the welcome email.

    Keys are matched exactly ("Growth", "Low", ...). Unknown or missing
    values degrade to generic wording rather than failing.

    Args:
        preferred_industry: Industry the user selected at sign-up.
        investment_goals: One of the GOAL_MESSAGES keys.
        risk_tolerance: One of the RISK_MESSAGES keys.
        app_name: Product name used in the greeting.

    Returns:
        The intro text.
    """
    industry = (preferred_industry or "").strip() or DEFAULT_INDUSTRY

    return WELCOME_INTRO_TEMPLATE.format(
        app_name=app_name,
        industry=industry,
        risk=risk_message(risk_tolerance),
        goal=goal_message(investment_goals),
    )
