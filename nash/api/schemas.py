"""
Request/response models for the HTTP API.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List
from datetime import datetime


class ApiKeyResponse(BaseModel):
    apiKey: str


class ApiKeyRecord(BaseModel):
    api_key: str
    expiration: datetime


class PromptResponse(BaseModel):
    response: str


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    pair_count: int
    key_count: int
    heartbeat: Dict[str, Any]


# Validation errors are reported field by field
class ValidationFieldError(BaseModel):
    field: str
    message: str
    value: Any = None


class ValidationErrorResponse(BaseModel):
    error_type: str = "VALIDATION_ERROR"
    message: str
    errors: List[ValidationFieldError]
    timestamp: datetime = Field(default_factory=datetime.now)
