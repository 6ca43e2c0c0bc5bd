"""Pydantic request/response models for the wolclient API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DeviceDraft(BaseModel):
    """Device fields supplied by a client. An 'id' here is never trusted on create."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    name: str = Field(min_length=1)
    mac: str = Field(min_length=1)
    targetAddr: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=0, le=65535)


class DeviceResponse(BaseModel):
    id: str
    name: str
    mac: str
    targetAddr: Optional[str] = None
    port: Optional[int] = None


class WakeRequest(BaseModel):
    mac: str
    targetAddr: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=0, le=65535)


class WakeResponse(BaseModel):
    status: str
    mac: str
    destination: str
