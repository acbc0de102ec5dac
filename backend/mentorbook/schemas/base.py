"""Strict schema baselines with forbidden extras by default."""

from pydantic import BaseModel, ConfigDict


class StrictRequestModel(BaseModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)


class ResponseModel(BaseModel):
    """Response DTO base readable straight from ORM objects."""

    model_config = ConfigDict(from_attributes=True)
