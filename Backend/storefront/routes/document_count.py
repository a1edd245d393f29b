"""
Document counts for the admin dashboard.

    GET /api/document-count?models=Product,Category
        -> {"total": 12, "models": [{"name": "Product", "count": 9}, ...]}

Unknown model names are reported with a count of 0.
"""

import asyncio
import logging

from fastapi import APIRouter, Request, Response

from ..core.responses import ERROR_RESPONSES, Responses
from ..middlewares import HandlerContext, ModelDictionary, with_middleware
from ..repository import ModelName

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/document-count", tags=["dashboard"], responses=ERROR_RESPONSES)


async def _count(models: ModelDictionary, name: str) -> int:
    try:
        handle = models.get(ModelName(name))
    except ValueError:
        logger.debug(f"Unknown model in document count: {name}")
        return 0
    return await handle.count() if handle is not None else 0


@router.get("")
@with_middleware
async def document_count(request: Request, ctx: HandlerContext) -> Response:
    raw = request.query_params.get("models") or ""
    names = [name.strip() for name in raw.split(",") if name.strip()]

    counts = await asyncio.gather(*(_count(ctx.models or {}, name) for name in names))

    return Responses.success({
        "total": sum(counts),
        "models": [{"name": name, "count": count} for name, count in zip(names, counts)],
    })
