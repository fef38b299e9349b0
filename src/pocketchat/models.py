"""
Pydantic models for PocketChat database entities.

This module defines the two persisted entities, providing validation,
serialization, and type safety for rows read from SQLite.
"""

import sqlite3
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BaseDBModel(BaseModel):
    """Base model for all database entities."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        frozen=True,
    )

    id: int = Field(..., ge=1, description="Store-assigned row identifier")

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "BaseDBModel":
        """Build a model from a ``sqlite3.Row`` (unknown columns are ignored)."""
        return cls.model_validate({key: row[key] for key in row.keys()})

    def to_dict(self) -> dict[str, Any]:
        """Convert model to a plain dictionary."""
        return self.model_dump(mode="json")


class Account(BaseDBModel):
    """Registered user account."""

    username: str = Field(..., min_length=1, description="Unique username")
    password: str = Field(..., repr=False, description="Stored credential")
    photo: Optional[str] = Field(None, description="Profile image URI")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary without the credential."""
        return self.model_dump(mode="json", exclude={"password"})


class Message(BaseDBModel):
    """Direct message between two accounts."""

    sender: str = Field(..., description="Sender username")
    receiver: str = Field(..., description="Receiver username")
    message: Optional[str] = Field(None, description="Text body")
    image: Optional[str] = Field(None, description="Attached image URI")
    timestamp: str = Field(..., description="ISO-8601 send time, display only")

    @field_validator("message", mode="before")
    @classmethod
    def empty_body_is_none(cls, v: Optional[str]) -> Optional[str]:
        """The ``message`` column is NOT NULL, so an absent body is stored as ''."""
        if v == "":
            return None
        return v

    @property
    def has_image(self) -> bool:
        """Whether an image is attached."""
        return self.image is not None
