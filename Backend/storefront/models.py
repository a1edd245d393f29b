import re
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .core.db import Base


_WHITESPACE_RE = re.compile(r"\s+")
_NON_SLUG_RE = re.compile(r"[^a-z0-9-]")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def slugify(name: str) -> str:
    """Derive a URL slug: lowercase, whitespace runs to "-", anything outside [a-z0-9-] dropped."""
    return _NON_SLUG_RE.sub("", _WHITESPACE_RE.sub("-", name.lower()))


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class DocumentMixin:
    """Serializes a row into a JSON-ready document with camelCase keys."""

    # (attribute, document key) pairs
    _document_fields = ()
    # relationship attribute -> foreign key attribute
    _references = {}

    def to_document(self, populates: Iterable[str] = ()) -> dict[str, Any]:
        populated = set(populates)
        doc: dict[str, Any] = {"id": str(self.id)}
        for attr, key in self._document_fields:
            doc[key] = getattr(self, attr)
        for relation, fk_attr in self._references.items():
            if relation in populated:
                related = getattr(self, relation)
                doc[relation] = related.to_document() if related is not None else None
            else:
                fk = getattr(self, fk_attr)
                doc[relation] = str(fk) if fk is not None else None
        doc["createdAt"] = _isoformat(self.created_at)
        doc["updatedAt"] = _isoformat(self.updated_at)
        return doc


class Category(DocumentMixin, Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    image: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    seo_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    seo_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    parent: Mapped[Optional["Category"]] = relationship(remote_side=[id])

    _document_fields = (
        ("name", "name"),
        ("slug", "slug"),
        ("description", "description"),
        ("image", "image"),
        ("is_active", "isActive"),
        ("seo_title", "seoTitle"),
        ("seo_description", "seoDescription"),
        ("sort_order", "sortOrder"),
    )
    _references = {"parent": "parent_id"}


class Product(DocumentMixin, Base):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[float] = mapped_column(Float, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    category: Mapped[Optional[Category]] = relationship()

    _document_fields = (
        ("name", "name"),
        ("slug", "slug"),
        ("description", "description"),
        ("price", "price"),
        ("stock", "stock"),
        ("images", "images"),
        ("is_active", "isActive"),
    )
    _references = {"category": "category_id"}
