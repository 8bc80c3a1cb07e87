"""Revenue report model."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class RevenueReport(BaseModel):
    """Net revenue in cents, overall and per ``YYYY-MM`` of the paid date."""

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    total_cents: int = 0
    by_month: dict[str, int] = Field(default_factory=dict)
