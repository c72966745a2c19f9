"""
API Request Validation.

Uses Pydantic for request payload validation.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


USER_CREATED_EVENT = "app/user.created"
SEND_DAILY_NEWS_EVENT = "app/send.daily.news"


class UserCreatedEvent(BaseModel):
    """
    Payload of the app/user.created event.

    Accepts the web app's camelCase keys as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: EmailStr
    name: str = Field(default="", max_length=200)
    country: Optional[str] = Field(default=None, max_length=100)
    investment_goals: Optional[str] = Field(default=None, alias="investmentGoals")
    risk_tolerance: Optional[str] = Field(default=None, alias="riskTolerance")
    preferred_industry: Optional[str] = Field(default=None, alias="preferredIndustry")

    @field_validator("name", "country", "investment_goals", "risk_tolerance", "preferred_industry")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        """Trim surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v


class EventEnvelope(BaseModel):
    """Request body for /events."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Event name, e.g. app/user.created",
    )
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v
