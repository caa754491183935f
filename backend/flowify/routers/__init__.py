"""Routers module."""

from .cep import router as cep_router
from .products import router as products_router
from .sales import router as sales_router
from .schedulings import router as schedulings_router

__all__ = ["cep_router", "products_router", "sales_router", "schedulings_router"]
