"""Pydantic read models returned by the query surface."""

import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CampaignRecord(BaseModel):
    """Full campaign record as returned by get-campaign."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    goal: int
    total: int
    deadline: int
    owner: str
    status: str
    active: bool
    successful: bool
    withdrawn: bool
    finalized: bool


class CampaignStatusView(BaseModel):
    """Derived campaign status, including the countdown in blocks."""

    id: int
    status: str
    active: bool
    successful: bool
    withdrawn: bool
    finalized: bool
    total: int
    goal: int
    deadline: int
    current_height: int
    blocks_remaining: int
    deadline_passed: bool


class CampaignsSummary(BaseModel):
    """All four aggregate counters read in one round trip."""

    total_camps: int
    active_camps: int
    total_stx: int
    total_contributors: int


class ContributionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    campaign_id: int
    contributor: str
    amount: int
    refunded: int


class LedgerEventRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tx_id: str
    log_index: int
    block_height: int
    campaign_id: Optional[int]
    sender: str
    event_name: str
    event_data: Dict[str, Any]

    @field_validator("event_data", mode="before")
    @classmethod
    def decode_json(cls, v: Any) -> Any:
        """Event payloads are stored as JSON text."""
        if isinstance(v, str):
            return json.loads(v)
        return v or {}
