"""
==============================================================================
Common Schemas Module
==============================================================================

Shared response schemas used across API endpoints.

==============================================================================
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Body of the 'error' key in failed responses."""
    code: str
    message: str
    timestamp: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Error envelope produced by the AppException handler."""
    success: bool = Field(default=False)
    error: ErrorDetail
