"""Shared response schemas."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Plain acknowledgement body, e.g. after delete or logout."""

    message: str
