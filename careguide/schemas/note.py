"""
Care Guide Notes API — Note & Post Request Schemas
====================================================

What:  Request bodies for creating and updating notes and posts.
How:   FastAPI validates bodies against these models before the handler runs;
       failures are rendered as 400 by the global handler.
"""

from typing import Optional

from pydantic import BaseModel, Field

from careguide.models.note import Priority


class NoteCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255, description="Note title")
    content: str = Field(min_length=1, description="Note body")
    priority: Optional[Priority] = Field(default=None, description="LOW, MEDIUM or HIGH")


class NoteUpdate(BaseModel):
    """Partial update; only fields present in the body are written."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[Priority] = None


class PostCreate(BaseModel):
    content: str = Field(min_length=1, description="Post body")


class PostUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
