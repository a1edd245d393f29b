from .categories import router as categories_router
from .document_count import router as document_count_router
from .products import router as products_router

__all__ = ["categories_router", "document_count_router", "products_router"]
