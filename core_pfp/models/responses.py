from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TransformResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image: str  # base64, no data: prefix
    model: str
    style: str | None = None
    processing_time: int = Field(..., ge=0, alias="processingTime")
    success: bool = True


class ErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    details: str | None = None
    code: str
    processing_time: int | None = Field(default=None, ge=0, alias="processingTime")


class HealthResponse(BaseModel):
    ok: bool = True
    uptime: int
    timestamp: str


class DebugResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    endpoints: list[str]
    timestamp: str
    node_env: str = Field(..., alias="nodeEnv")
    version: str
