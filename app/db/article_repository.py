"""Article persistence operations.

All reads exclude soft-deleted rows. Each mutating call commits its own
transaction.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.db.models import Article

UPDATABLE_FIELDS = ("title", "content")


class ArticleRepository:
    def __init__(self, session: Session):
        self._session = session

    def create(self, *, title: str, content: str, user_id: int) -> Article:
        article = Article(title=title, content=content, user_id=user_id)
        self._session.add(article)
        self._session.commit()
        self._session.refresh(article)
        return article

    def get_by_id(self, article_id: int) -> Optional[Article]:
        """Return the live article with ``article_id``, or None."""
        return self._session.execute(
            select(Article).where(
                Article.id == article_id,
                Article.deleted_at.is_(None),
            )
        ).scalar_one_or_none()

    def list(self, *, page: int, limit: int) -> tuple[list[Article], int]:
        """Return one page of live articles, newest first, and the total count.

        Args:
            page: 1-based page number.
            limit: Page size.

        Returns:
            Tuple of (articles on this page, total live articles).
        """
        total = self._session.execute(
            select(func.count()).select_from(Article).where(Article.deleted_at.is_(None))
        ).scalar_one()

        rows = self._session.execute(
            select(Article)
            .where(Article.deleted_at.is_(None))
            .order_by(Article.created_at.desc(), Article.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return list(rows), int(total)

    def update(self, article_id: int, changes: Mapping[str, Any]) -> bool:
        """Apply ``changes`` to a live article.

        Returns:
            False if no live article matched.

        Raises:
            ValueError: If ``changes`` is empty or names a non-updatable field.
        """
        if not changes:
            raise ValueError("no fields to update")
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")

        result = self._session.execute(
            update(Article)
            .where(Article.id == article_id, Article.deleted_at.is_(None))
            .values(**changes, updated_at=datetime.now(timezone.utc))
        )
        self._session.commit()
        return result.rowcount > 0

    def soft_delete(self, article_id: int) -> bool:
        """Mark a live article deleted. Returns False if none matched."""
        result = self._session.execute(
            update(Article)
            .where(Article.id == article_id, Article.deleted_at.is_(None))
            .values(deleted_at=datetime.now(timezone.utc))
        )
        self._session.commit()
        return result.rowcount > 0
