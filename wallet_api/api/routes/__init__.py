from __future__ import annotations

from wallet_api.api.routes.health import router as health_router
from wallet_api.api.routes.transactions import router as transactions_router

__all__ = ["health_router", "transactions_router"]
