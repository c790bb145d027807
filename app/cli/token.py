"""Issue a bearer token for manual testing.

Usage:
    python -m app.cli.token --user-id 42
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from app.core.auth import create_test_token
from app.core.config import settings
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print a 24h HS256 token signed with the configured JWT secret."
    )
    parser.add_argument(
        "--user-id",
        type=int,
        required=True,
        help="Positive principal id embedded in the user_id claim.",
    )
    args = parser.parse_args(argv)
    if args.user_id <= 0:
        parser.error("--user-id must be a positive integer")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging(settings.log)

    token = create_test_token(args.user_id, settings.jwt.secret)
    logger.info("token.issued", extra={"user_id": args.user_id})
    sys.stdout.write(f"{token}\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
