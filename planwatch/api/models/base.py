"""
Base models for the planwatch API.

Error responses share one envelope::

    {"success": false, "error": {"code": ..., "message": ..., "details": {...}}}
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """
    Standard error body.

    Attributes:
        code (str): Error code identifier
        message (str): Human-readable error message
        details (Optional[Dict[str, Any]]): Additional error details
    """

    code: str = Field(..., description="Error code identifier")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None, description="Additional error details"
    )


class ErrorEnvelope(BaseModel):
    """Envelope returned for every domain error."""

    success: bool = Field(False, description="Always false for errors")
    error: ErrorResponse

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": {
                    "code": "PLAN-TaskNotFound",
                    "message": "Task 'S1-T9' not found",
                    "details": {"task_id": "S1-T9"},
                },
            }
        }
    )


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)
