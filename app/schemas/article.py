"""Pydantic schemas for article requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

TITLE_MAX_LENGTH = 255


class ArticleCreate(BaseModel):
    """Body of ``POST /api/articles``."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str = Field(..., min_length=1)


class ArticleUpdate(BaseModel):
    """Body of ``PUT /api/articles/{id}``; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str | None = Field(default=None, min_length=1)

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class ArticleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    user_id: int
    created_at: datetime
    updated_at: datetime


class ArticleListResponse(BaseModel):
    items: List[ArticleResponse] = Field(default_factory=list)
    total: int = Field(..., description="Live articles across all pages.")
    page: int = Field(..., description="1-based page number actually served.")
    limit: int = Field(..., description="Page size actually applied.")
