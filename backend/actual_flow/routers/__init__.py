from .connections import router as connections_router
from .accounts import router as accounts_router
from .mappings import router as mappings_router
from .imports import router as imports_router

__all__ = ["connections_router", "accounts_router", "mappings_router", "imports_router"]
