"""OpenAPI customization.

Adds the bearer security scheme and marks the article mutations as requiring
it. Read-only endpoints stay anonymous in the generated docs, matching the
runtime behaviour of ``require_principal``.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

BEARER_SCHEME_NAME = "BearerAuth"
PROTECTED_METHODS = {"post", "put", "delete"}
PROTECTED_PATH_PREFIX = "/api/articles"


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with tags and bearer security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            BEARER_SCHEME_NAME,
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "HS256/384/512 token carrying a positive integer user_id claim.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in (
            {"name": "Articles", "description": "Article CRUD endpoints."},
            {"name": "Health", "description": "Liveness check."},
        ):
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not path.startswith(PROTECTED_PATH_PREFIX):
                continue
            for method, operation in methods.items():
                if method in PROTECTED_METHODS and isinstance(operation, dict):
                    operation["security"] = [{BEARER_SCHEME_NAME: []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
