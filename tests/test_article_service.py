"""Unit tests for article use cases against an in-memory SQLite database."""

from typing import Iterator

import pytest
from sqlalchemy.orm import Session

from app.core.auth import Principal
from app.core.config import DatabaseSettings
from app.core.errors import ForbiddenAppError, NotFoundAppError, ValidationAppError
from app.db.article_repository import ArticleRepository
from app.db.session import create_db_engine, get_session_maker, init_db
from app.services.article_service import ArticleService, normalize_pagination

OWNER = Principal(user_id=1)
STRANGER = Principal(user_id=2)


@pytest.fixture
def session() -> Iterator[Session]:
    engine = create_db_engine(DatabaseSettings(url="sqlite://"))
    init_db(engine)
    db = get_session_maker(engine)()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def service(session: Session) -> ArticleService:
    return ArticleService(ArticleRepository(session))


class TestPagination:
    @pytest.mark.parametrize(
        "page, limit, expected",
        [
            (1, 10, (1, 10)),
            (0, 10, (1, 10)),
            (-5, 10, (1, 10)),
            (2, 0, (2, 10)),
            (2, -1, (2, 10)),
            (3, 101, (3, 100)),
            (3, 100, (3, 100)),
            (None, None, (1, 10)),
        ],
    )
    def test_normalize_pagination(self, page, limit, expected) -> None:
        assert normalize_pagination(page, limit) == expected


class TestCreateAndRead:
    def test_create_sets_owner(self, service: ArticleService) -> None:
        article = service.create_article(OWNER, title="Hello", content="World")

        assert article.id is not None
        assert article.user_id == OWNER.user_id
        assert service.get_article(article.id).title == "Hello"

    def test_get_missing_raises_not_found(self, service: ArticleService) -> None:
        with pytest.raises(NotFoundAppError):
            service.get_article(12345)

    def test_list_is_paginated_newest_first(self, service: ArticleService) -> None:
        ids = [
            service.create_article(OWNER, title=f"t{i}", content="c").id for i in range(5)
        ]

        items, total, page, limit = service.list_articles(1, 2)
        assert total == 5
        assert (page, limit) == (1, 2)
        assert [a.id for a in items] == [ids[4], ids[3]]

        items, _, _, _ = service.list_articles(3, 2)
        assert [a.id for a in items] == [ids[0]]


class TestUpdate:
    def test_owner_can_update(self, service: ArticleService) -> None:
        article = service.create_article(OWNER, title="Old", content="Body")

        updated = service.update_article(OWNER, article.id, {"title": "New"})

        assert updated.title == "New"
        assert updated.content == "Body"

    def test_non_owner_forbidden_and_article_unchanged(self, service: ArticleService) -> None:
        article = service.create_article(OWNER, title="Old", content="Body")

        with pytest.raises(ForbiddenAppError):
            service.update_article(STRANGER, article.id, {"title": "Hijacked"})

        assert service.get_article(article.id).title == "Old"

    def test_ownership_checked_before_body(self, service: ArticleService) -> None:
        article = service.create_article(OWNER, title="Old", content="Body")

        with pytest.raises(ForbiddenAppError):
            service.update_article(STRANGER, article.id, {"title": ""})

    def test_missing_checked_before_ownership(self, service: ArticleService) -> None:
        with pytest.raises(NotFoundAppError):
            service.update_article(STRANGER, 999, {"title": "x"})

    def test_invalid_body(self, service: ArticleService) -> None:
        article = service.create_article(OWNER, title="Old", content="Body")

        with pytest.raises(ValidationAppError) as exc_info:
            service.update_article(OWNER, article.id, {"title": "", "content": "x" * 3})

        assert exc_info.value.details["errors"] == ["title is too short"]

    def test_title_too_long(self, service: ArticleService) -> None:
        article = service.create_article(OWNER, title="Old", content="Body")

        with pytest.raises(ValidationAppError) as exc_info:
            service.update_article(OWNER, article.id, {"title": "x" * 256})

        assert exc_info.value.details["errors"] == ["title is too long"]

    @pytest.mark.parametrize("payload", [{}, {"title": None}, {"unknown": "x"}])
    def test_no_fields_to_update(self, service: ArticleService, payload: dict) -> None:
        article = service.create_article(OWNER, title="Old", content="Body")

        with pytest.raises(ValidationAppError) as exc_info:
            service.update_article(OWNER, article.id, payload)

        assert exc_info.value.message == "no fields to update"


class TestDelete:
    def test_owner_soft_deletes(self, service: ArticleService, session: Session) -> None:
        article = service.create_article(OWNER, title="Bye", content="Body")

        service.delete_article(OWNER, article.id)

        with pytest.raises(NotFoundAppError):
            service.get_article(article.id)
        # Row is kept, only hidden
        assert session.get(type(article), article.id).deleted_at is not None

    def test_deleted_article_hidden_from_list(self, service: ArticleService) -> None:
        keep = service.create_article(OWNER, title="Keep", content="c")
        gone = service.create_article(OWNER, title="Gone", content="c")

        service.delete_article(OWNER, gone.id)

        items, total, _, _ = service.list_articles()
        assert total == 1
        assert [a.id for a in items] == [keep.id]

    def test_delete_twice_is_not_found(self, service: ArticleService) -> None:
        article = service.create_article(OWNER, title="Bye", content="Body")
        service.delete_article(OWNER, article.id)

        with pytest.raises(NotFoundAppError):
            service.delete_article(OWNER, article.id)

    def test_non_owner_cannot_delete(self, service: ArticleService) -> None:
        article = service.create_article(OWNER, title="Mine", content="Body")

        with pytest.raises(ForbiddenAppError) as exc_info:
            service.delete_article(STRANGER, article.id)

        assert exc_info.value.message == "you can only delete your own articles"
        assert service.get_article(article.id).title == "Mine"
