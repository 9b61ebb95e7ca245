"""Request payload models for hold creation."""

from datetime import datetime
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field


class BundleSelection(BaseModel):
    """Chosen start time for one service of a bundle"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    service_id: str = Field(alias="service")
    start: Union[datetime, str] = Field(alias="startISO")


class SingleHoldRequest(BaseModel):
    """Validated single-service hold request"""
    model_config = ConfigDict(populate_by_name=True)

    service_id: str = Field(alias="service", min_length=1)
    start: Union[datetime, str] = Field(alias="startISO")


class BundleHoldRequest(BaseModel):
    """Validated bundle hold request"""
    model_config = ConfigDict(populate_by_name=True)

    bundle_id: str = Field(alias="bundleId", min_length=1)
    selections: List[BundleSelection] = Field(min_length=1)
