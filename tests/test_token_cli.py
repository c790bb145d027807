"""Tests for the test-token CLI."""

import jwt
import pytest

from app.cli import token as token_cli
from app.core.config import settings


@pytest.fixture(autouse=True)
def _keep_test_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(token_cli, "configure_logging", lambda *_: None)


def test_prints_verifiable_token(capsys: pytest.CaptureFixture[str]) -> None:
    assert token_cli.main(["--user-id", "42"]) == 0

    printed = capsys.readouterr().out.strip()
    claims = jwt.decode(printed, settings.jwt.secret, algorithms=["HS256"])
    assert claims["user_id"] == 42
    assert claims["exp"] - claims["iat"] == 24 * 60 * 60


@pytest.mark.parametrize("user_id", ["0", "-3"])
def test_rejects_non_positive_user_id(user_id: str) -> None:
    with pytest.raises(SystemExit) as exc_info:
        token_cli.main(["--user-id", user_id])

    assert exc_info.value.code == 2


def test_user_id_is_required() -> None:
    with pytest.raises(SystemExit):
        token_cli.main([])
