"""Article use cases.

Mutations follow a fixed order: load the article (not found), check ownership
(forbidden), then validate the requested changes. A caller probing someone
else's article therefore learns whether it exists before being refused.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from app.core.auth import Principal
from app.core.errors import NotFoundAppError, ValidationAppError
from app.core.ownership import ensure_owner
from app.core.validation import normalize_validation_errors
from app.db.article_repository import ArticleRepository
from app.db.models import Article
from app.schemas.article import ArticleUpdate

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def normalize_pagination(page: int | None, limit: int | None) -> tuple[int, int]:
    """Clamp paging parameters to the served range.

    Examples:
        >>> normalize_pagination(0, 500)
        (1, 100)
        >>> normalize_pagination(None, 0)
        (1, 10)
    """
    if page is None or page < 1:
        page = DEFAULT_PAGE
    if limit is None or limit < 1:
        limit = DEFAULT_LIMIT
    elif limit > MAX_LIMIT:
        limit = MAX_LIMIT
    return page, limit


class ArticleService:
    def __init__(self, repository: ArticleRepository):
        self._repository = repository

    def create_article(self, principal: Principal, *, title: str, content: str) -> Article:
        article = self._repository.create(
            title=title, content=content, user_id=principal.user_id
        )
        logger.info(
            "article.created",
            extra={"article_id": article.id, "user_id": principal.user_id},
        )
        return article

    def get_article(self, article_id: int) -> Article:
        """Return a live article.

        Raises:
            NotFoundAppError: If the article is missing or soft-deleted.
        """
        article = self._repository.get_by_id(article_id)
        if article is None:
            raise NotFoundAppError(
                code="article_not_found",
                message="article not found",
                details={"article_id": article_id},
            )
        return article

    def list_articles(
        self, page: int | None = None, limit: int | None = None
    ) -> tuple[list[Article], int, int, int]:
        """Return ``(items, total, page, limit)`` with normalized paging."""
        page, limit = normalize_pagination(page, limit)
        items, total = self._repository.list(page=page, limit=limit)
        return items, total, page, limit

    def update_article(
        self, principal: Principal, article_id: int, payload: Any
    ) -> Article:
        """Apply a partial update on behalf of ``principal``.

        ``payload`` is the raw request body; it is validated only once the
        caller is known to own the article.

        Raises:
            NotFoundAppError: Article missing or soft-deleted.
            ForbiddenAppError: Caller does not own the article.
            ValidationAppError: Body invalid or names no updatable field.
        """
        article = self.get_article(article_id)
        ensure_owner(principal, article.user_id, action="update")

        try:
            update = ArticleUpdate.model_validate(payload)
        except ValidationError as exc:
            raise ValidationAppError(
                code="validation_error",
                message="request validation failed",
                details={"errors": normalize_validation_errors(exc.errors())},
            ) from exc

        changes = update.changes()
        if not changes:
            raise ValidationAppError(code="no_fields_to_update", message="no fields to update")

        if not self._repository.update(article_id, changes):
            # Deleted between the ownership check and the write
            raise NotFoundAppError(code="article_not_found", message="article not found")

        logger.info(
            "article.updated",
            extra={
                "article_id": article_id,
                "user_id": principal.user_id,
                "fields": sorted(changes),
            },
        )
        return self.get_article(article_id)

    def delete_article(self, principal: Principal, article_id: int) -> None:
        article = self.get_article(article_id)
        ensure_owner(principal, article.user_id, action="delete")

        if not self._repository.soft_delete(article_id):
            raise NotFoundAppError(code="article_not_found", message="article not found")

        logger.info(
            "article.deleted",
            extra={"article_id": article_id, "user_id": principal.user_id},
        )
