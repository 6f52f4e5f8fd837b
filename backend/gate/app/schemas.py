"""Pydantic response models for the gate endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthStatusResponse(BaseModel):
    """Response schema for ``GET /system/health``."""

    status: str
    env: str


class RecaptchaStatusResponse(BaseModel):
    """Response schema for ``GET /recaptcha/status``."""

    display: bool
    site_key: str | None = Field(default=None, alias="siteKey")
    cookie_name: str = Field(alias="cookieName")

    model_config = ConfigDict(populate_by_name=True)


class RecaptchaSessionResponse(BaseModel):
    """Response schema for ``GET /recaptcha/session``."""

    verified_by: str = Field(alias="verifiedBy")
    expires_at: datetime = Field(alias="expiresAt")
    cookie: str

    model_config = ConfigDict(populate_by_name=True)
