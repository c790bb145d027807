"""Article CRUD endpoints.

Reads are anonymous; create, update and delete require a bearer token, and
update/delete additionally require the caller to own the article.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status

from app.core.auth import Principal, require_principal
from app.db.article_repository import ArticleRepository
from app.db.session import SessionDep
from app.schemas.article import ArticleCreate, ArticleListResponse, ArticleResponse
from app.services.article_service import ArticleService

router = APIRouter(prefix="/api/articles", tags=["Articles"])

PrincipalDep = Annotated[Principal, Depends(require_principal)]
ArticleId = Annotated[int, Path(gt=0, description="Positive article id.")]


def get_article_service(session: SessionDep) -> ArticleService:
    return ArticleService(ArticleRepository(session))


ServiceDep = Annotated[ArticleService, Depends(get_article_service)]


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
def create_article(
    payload: ArticleCreate, principal: PrincipalDep, service: ServiceDep
) -> ArticleResponse:
    """Create an article owned by the caller."""
    article = service.create_article(
        principal, title=payload.title, content=payload.content
    )
    return ArticleResponse.model_validate(article)


@router.get("", response_model=ArticleListResponse)
def list_articles(
    service: ServiceDep,
    page: Annotated[int, Query(description="1-based page; values < 1 mean 1.")] = 1,
    limit: Annotated[int, Query(description="Page size; clamped to 1..100.")] = 10,
) -> ArticleListResponse:
    """List live articles, newest first."""
    items, total, page, limit = service.list_articles(page, limit)
    return ArticleListResponse(
        items=[ArticleResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{article_id}", response_model=ArticleResponse)
def get_article(article_id: ArticleId, service: ServiceDep) -> ArticleResponse:
    return ArticleResponse.model_validate(service.get_article(article_id))


@router.put("/{article_id}", response_model=ArticleResponse)
def update_article(
    article_id: ArticleId,
    principal: PrincipalDep,
    service: ServiceDep,
    payload: Annotated[Any, Body()] = None,
) -> ArticleResponse:
    """Partially update an article the caller owns.

    The body is taken raw and validated by the service after the ownership
    check, so a non-owner gets 403 regardless of what they sent.
    """
    article = service.update_article(principal, article_id, payload)
    return ArticleResponse.model_validate(article)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_article(
    article_id: ArticleId, principal: PrincipalDep, service: ServiceDep
) -> Response:
    """Soft-delete an article the caller owns."""
    service.delete_article(principal, article_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
