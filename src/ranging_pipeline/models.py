"""Pydantic models for validation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RangeRecordModel(BaseModel):
    """Validated sensor record: distance in meters and RSSI in dB."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    distance: float
    signal_strength: int
