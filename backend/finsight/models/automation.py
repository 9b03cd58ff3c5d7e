"""Automation pass result models."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class PersistedEffect(BaseModel):
    """What one due rule caused during a pass."""

    rule_id: str
    period: str = Field(..., description="Idempotency key '<rule_id>:<YYYY-MM>'")
    outcome: str = Field(..., description="'materialized', 'skipped' or 'failed'")
    transaction_id: Optional[str] = Field(None, description="New transaction, None when skipped or failed")
    marker_written: bool = False
    error: Optional[str] = None


class AutomationRunResponse(BaseModel):
    """Response from an explicit automation run."""

    user_id: str
    evaluated_at: datetime
    rules_evaluated: int
    effects: List[PersistedEffect] = Field(default_factory=list)
