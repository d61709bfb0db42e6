"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata
- A documented 429 response on every rate-limited operation
- A shared error body schema for the documented error responses
- 400 in place of FastAPI's default 422, matching the request validation handler

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_ERROR_SCHEMA = {
    "type": "object",
    "properties": {
        "error": {
            "type": "object",
            "properties": {
                "code": {"type": "string"},
                "message": {"type": "string"},
                "request_id": {"type": "string"},
                "details": {"type": "object"},
            },
            "required": ["code", "message"],
        }
    },
}

_RATE_LIMITED_RESPONSE = {
    "description": "Rate limit exceeded. See the Retry-After header.",
    "headers": {
        "Retry-After": {"schema": {"type": "integer"}},
        "X-RateLimit-Limit": {"schema": {"type": "integer"}},
        "X-RateLimit-Remaining": {"schema": {"type": "integer"}},
        "X-RateLimit-Reset": {"schema": {"type": "integer"}},
    },
    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/ErrorResponse"}}},
}

_INVALID_REQUEST_RESPONSE = {
    "description": "Invalid request: malformed JSON, wrong types or failed validation.",
    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/ErrorResponse"}}},
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and error responses."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        component_schemas = components.setdefault("schemas", {})
        component_schemas.setdefault("ErrorResponse", _ERROR_SCHEMA)

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Transactions",
                "description": "Create, list and delete transactions and read balance summaries.",
            },
            {
                "name": "Health",
                "description": "Liveness check. Not rate limited.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.setdefault("responses", {})
                # Request validation errors are answered with 400
                if responses.pop("422", None) is not None:
                    responses.setdefault("400", _INVALID_REQUEST_RESPONSE)
                # Everything except health goes through the rate limiter
                if not path.endswith("/health"):
                    responses.setdefault("429", _RATE_LIMITED_RESPONSE)

        component_schemas.pop("HTTPValidationError", None)
        component_schemas.pop("ValidationError", None)

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
