"""
Data-access handles.

Each entity kind gets one ModelHandle, looked up by ModelName. Handles hold
only the session factory and open a short-lived session per operation, so a
single handle dictionary is shared by every request in the process.

Handles speak in documents: plain dicts with camelCase keys, as produced by
DocumentMixin.to_document(). Filters are structural:

    {"name": {"$contains": "shirt", "$options": "i"}, "isActive": True}

A plain value means equality. Supported operators are $eq, $ne, $in, $gt,
$gte, $lt, $lte and $contains ($options "i" makes it case-insensitive).
Unknown fields are ignored.

Usage:
    handles = build_model_handles(session_factory)
    products = handles[ModelName.PRODUCT]
    doc = await products.find_by_id(product_id, populates=["category"])
"""

import logging
import uuid
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import ColumnElement, Uuid, false, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from .core.errors import BadRequest
from .models import Category, DocumentMixin, Product

logger = logging.getLogger(__name__)


class ModelName(str, Enum):
    PRODUCT = "Product"
    CATEGORY = "Category"


MODEL_CLASSES: dict[ModelName, type[DocumentMixin]] = {
    ModelName.PRODUCT: Product,
    ModelName.CATEGORY: Category,
}

Where = dict[str, Any]


def parse_id(value: Any) -> Optional[uuid.UUID]:
    """Parse a document id; malformed ids yield None."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _field_columns(model) -> dict[str, Any]:
    """Map document keys to mapped columns."""
    columns = {"id": model.id, "createdAt": model.created_at, "updatedAt": model.updated_at}
    for attr, key in model._document_fields:
        columns[key] = getattr(model, attr)
    for relation, fk_attr in model._references.items():
        columns[relation] = getattr(model, fk_attr)
    return columns


def _coerce(column, value: Any) -> Any:
    if isinstance(column.type, Uuid) and value is not None:
        return parse_id(value)
    return value


def _equals(column, value: Any) -> ColumnElement:
    if value is None:
        return column.is_(None)
    coerced = _coerce(column, value)
    if coerced is None:
        # Malformed id can never match
        return false()
    return column == coerced


def _operator_clauses(column, field: str, condition: dict[str, Any]) -> list[ColumnElement]:
    options = str(condition.get("$options", ""))
    clauses = []
    for op, value in condition.items():
        if op == "$options":
            continue
        if op == "$eq":
            clauses.append(_equals(column, value))
        elif op == "$ne":
            clauses.append(column.is_not(None) if value is None else column != _coerce(column, value))
        elif op == "$in":
            values = [_coerce(column, v) for v in value]
            clauses.append(column.in_([v for v in values if v is not None]))
        elif op == "$gt":
            clauses.append(column > value)
        elif op == "$gte":
            clauses.append(column >= value)
        elif op == "$lt":
            clauses.append(column < value)
        elif op == "$lte":
            clauses.append(column <= value)
        elif op == "$contains":
            text = "" if value is None else str(value)
            if "i" in options:
                clauses.append(column.icontains(text, autoescape=True))
            else:
                clauses.append(column.contains(text, autoescape=True))
        else:
            raise BadRequest("Invalid filter", f"Unsupported operator {op} on field {field}")
    return clauses


def compile_where(model, where: Optional[Where]) -> list[ColumnElement]:
    """Translate a structural filter into SQLAlchemy clauses."""
    columns = _field_columns(model)
    clauses: list[ColumnElement] = []
    for field, condition in (where or {}).items():
        column = columns.get(field)
        if column is None:
            logger.debug(f"Ignoring filter on unknown field {model.__name__}.{field}")
            continue
        if isinstance(condition, dict) and any(str(k).startswith("$") for k in condition):
            clauses.extend(_operator_clauses(column, field, condition))
        else:
            clauses.append(_equals(column, condition))
    return clauses


class ModelHandle:
    """Find/count/create/update/delete over one entity collection."""

    def __init__(
        self,
        name: ModelName,
        model: type[DocumentMixin],
        session_factory: async_sessionmaker[AsyncSession],
    ):
        self.name = name
        self.model = model
        self._session_factory = session_factory

    def _populates(self, populates: Iterable[str]) -> list[str]:
        return [field for field in populates if field in self.model._references]

    def _select(self, populates: Sequence[str]):
        stmt = select(self.model)
        for relation in populates:
            stmt = stmt.options(selectinload(getattr(self.model, relation)))
        return stmt

    async def find(
        self,
        where: Optional[Where] = None,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
        populates: Iterable[str] = (),
    ) -> list[dict[str, Any]]:
        expand = self._populates(populates)
        stmt = (
            self._select(expand)
            .where(*compile_where(self.model, where))
            .order_by(self.model.created_at, self.model.id)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [row.to_document(expand) for row in result.scalars().all()]

    async def count(self, where: Optional[Where] = None) -> int:
        stmt = select(func.count()).select_from(self.model).where(*compile_where(self.model, where))
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def find_by_id(self, id: Any, populates: Iterable[str] = ()) -> Optional[dict[str, Any]]:
        pk = parse_id(id)
        if pk is None:
            return None
        expand = self._populates(populates)
        async with self._session_factory() as session:
            result = await session.execute(self._select(expand).where(self.model.id == pk))
            row = result.scalar_one_or_none()
            return row.to_document(expand) if row is not None else None

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        async with self._session_factory() as session:
            row = self.model(**data)
            session.add(row)
            await self._commit(session)
            await session.refresh(row)
            logger.info(f"Created {self.name.value} {row.id}")
            return row.to_document()

    async def update_by_id(self, id: Any, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        pk = parse_id(id)
        if pk is None:
            return None
        async with self._session_factory() as session:
            row = await session.get(self.model, pk)
            if row is None:
                return None
            for attr, value in data.items():
                setattr(row, attr, value)
            await self._commit(session)
            await session.refresh(row)
            logger.info(f"Updated {self.name.value} {row.id}")
            return row.to_document()

    async def delete_by_id(self, id: Any) -> Optional[dict[str, Any]]:
        pk = parse_id(id)
        if pk is None:
            return None
        async with self._session_factory() as session:
            row = await session.get(self.model, pk)
            if row is None:
                return None
            document = row.to_document()
            await session.delete(row)
            await self._commit(session)
            logger.info(f"Deleted {self.name.value} {pk}")
            return document

    async def _commit(self, session: AsyncSession) -> None:
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.warning(f"{self.name.value} write rejected by constraint: {e.orig}")
            raise BadRequest(
                f"Invalid {self.name.value.lower()}",
                "A document with the same slug already exists or a reference is invalid",
            ) from e


@lru_cache(maxsize=1)
def build_model_handles(
    session_factory: async_sessionmaker[AsyncSession],
) -> dict[ModelName, ModelHandle]:
    """One handle per model name, built once per session factory."""
    return {
        name: ModelHandle(name, model, session_factory)
        for name, model in MODEL_CLASSES.items()
    }
