from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Not rate limited and does not touch the database, so load balancers and
    keep-alive pingers can call it freely.
    """

    return {"status": "ok"}
