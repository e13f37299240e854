"""
Canonical reply model for the widget gateway.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Reply(BaseModel):
    """
    Normalized successful reply.

    ``text`` is always trimmed and never empty; empty provider content is
    reported as an error instead of a Reply.
    """
    text: str = Field(..., description="Trimmed reply text")
    provider: Optional[str] = None
    model: Optional[str] = None
    debug_info: Optional[str] = None

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("reply text must not be empty")
        return value
