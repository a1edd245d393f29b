"""
Category routes.

    GET    /api/category        -> Paginated list (page, pageSize, query/q)
    POST   /api/category        -> Create (staff only)
    GET    /api/category/{id}   -> Fetch one
    PUT    /api/category/{id}   -> Replace, re-deriving the slug (staff only)
    DELETE /api/category/{id}   -> Delete (staff only)
"""

from fastapi import APIRouter, Request, Response

from ..core.errors import NotFound
from ..core.pagination import (
    PaginationOptions,
    build_search_filter,
    model_paginate,
    parse_pagination_params,
)
from ..core.responses import ERROR_RESPONSES, Responses
from ..middlewares import HandlerContext, require_model, require_staff, with_middleware
from ..repository import ModelName
from ..schemas import CategoryInput, parse_body

router = APIRouter(prefix="/api/category", tags=["categories"], responses=ERROR_RESPONSES)


@router.get("")
@with_middleware
async def list_categories(request: Request, ctx: HandlerContext) -> Response:
    categories = require_model(ctx, ModelName.CATEGORY)
    page, page_size = parse_pagination_params(request.query_params)

    result = await model_paginate(
        categories,
        PaginationOptions(
            page=page,
            page_size=page_size,
            where=build_search_filter(request.query_params),
        ),
    )
    return Responses.paginated(result)


@router.post("", status_code=201)
@with_middleware
async def create_category(request: Request, ctx: HandlerContext) -> Response:
    require_staff(request)
    categories = require_model(ctx, ModelName.CATEGORY)

    body = await parse_body(request, CategoryInput)
    category = await categories.create(body.to_attributes())

    return Responses.created(category)


@router.get("/{id}")
@with_middleware
async def get_category(request: Request, ctx: HandlerContext) -> Response:
    categories = require_model(ctx, ModelName.CATEGORY)

    category = await categories.find_by_id(ctx.params["id"])
    if category is None:
        raise NotFound("Category not found")

    return Responses.success(category)


@router.put("/{id}")
@with_middleware
async def update_category(request: Request, ctx: HandlerContext) -> Response:
    require_staff(request)
    categories = require_model(ctx, ModelName.CATEGORY)

    body = await parse_body(request, CategoryInput)
    category = await categories.update_by_id(ctx.params["id"], body.to_attributes())
    if category is None:
        raise NotFound("Category not found")

    return Responses.success(category)


@router.delete("/{id}")
@with_middleware
async def delete_category(request: Request, ctx: HandlerContext) -> Response:
    require_staff(request)
    categories = require_model(ctx, ModelName.CATEGORY)

    category = await categories.delete_by_id(ctx.params["id"])
    if category is None:
        raise NotFound("Category not found")

    return Responses.success(category)
