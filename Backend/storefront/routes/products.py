"""
Product routes.

    GET    /api/product              -> Paginated list (page, pageSize, query/q, populate)
    POST   /api/product              -> Create (staff only)
    GET    /api/product/by-category  -> All products grouped by category
    GET    /api/product/{id}         -> Fetch one with its category expanded
    PUT    /api/product/{id}         -> Replace, re-deriving the slug (staff only)
    DELETE /api/product/{id}         -> Delete (staff only)
"""

from fastapi import APIRouter, Request, Response

from ..catalog import group_products_by_category
from ..core.errors import NotFound
from ..core.pagination import (
    PaginationOptions,
    build_search_filter,
    model_paginate,
    parse_pagination_params,
    parse_populates,
)
from ..core.responses import ERROR_RESPONSES, Responses
from ..middlewares import HandlerContext, require_model, require_staff, with_middleware
from ..repository import ModelName
from ..schemas import ProductInput, parse_body

router = APIRouter(prefix="/api/product", tags=["products"], responses=ERROR_RESPONSES)


@router.get("")
@with_middleware
async def list_products(request: Request, ctx: HandlerContext) -> Response:
    products = require_model(ctx, ModelName.PRODUCT)
    params = request.query_params
    page, page_size = parse_pagination_params(params)

    result = await model_paginate(
        products,
        PaginationOptions(
            page=page,
            page_size=page_size,
            where=build_search_filter(params),
            populates=parse_populates(params),
        ),
    )
    return Responses.paginated(result)


@router.post("", status_code=201)
@with_middleware
async def create_product(request: Request, ctx: HandlerContext) -> Response:
    require_staff(request)
    products = require_model(ctx, ModelName.PRODUCT)

    body = await parse_body(request, ProductInput)
    product = await products.create(body.to_attributes())

    return Responses.created(product)


@router.get("/by-category")
@with_middleware
async def list_products_by_category(request: Request, ctx: HandlerContext) -> Response:
    """Storefront landing view: every product, grouped under its category."""
    products = require_model(ctx, ModelName.PRODUCT)

    documents = await products.find(populates=["category"])
    return Responses.success(group_products_by_category(documents))


@router.get("/{id}")
@with_middleware
async def get_product(request: Request, ctx: HandlerContext) -> Response:
    products = require_model(ctx, ModelName.PRODUCT)

    product = await products.find_by_id(ctx.params["id"], populates=["category"])
    if product is None:
        raise NotFound("Product not found")

    return Responses.success(product)


@router.put("/{id}")
@with_middleware
async def update_product(request: Request, ctx: HandlerContext) -> Response:
    require_staff(request)
    products = require_model(ctx, ModelName.PRODUCT)

    body = await parse_body(request, ProductInput)
    product = await products.update_by_id(ctx.params["id"], body.to_attributes())
    if product is None:
        raise NotFound("Product not found")

    return Responses.success(product)


@router.delete("/{id}")
@with_middleware
async def delete_product(request: Request, ctx: HandlerContext) -> Response:
    require_staff(request)
    products = require_model(ctx, ModelName.PRODUCT)

    product = await products.delete_by_id(ctx.params["id"])
    if product is None:
        raise NotFound("Product not found")

    return Responses.success(product)
