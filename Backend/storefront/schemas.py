import uuid
from typing import Any, ClassVar, Optional, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .core.errors import BadRequest, format_validation_error
from .models import slugify

T = TypeVar("T", bound="DocumentInput")


class DocumentInput(BaseModel):
    """Request body for a document write. Keys are the camelCase document keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # body field -> foreign key attribute
    reference_fields: ClassVar[dict[str, str]] = {}

    name: str = Field(min_length=3)
    slug: Optional[str] = None

    @model_validator(mode="after")
    def name_has_slug(self):
        if not slugify(self.name):
            raise ValueError("Name must contain at least one letter or number")
        return self

    def to_attributes(self) -> dict[str, Any]:
        """Column values for the write. The slug is always derived from the name."""
        data = self.model_dump(exclude_unset=True)
        for body_field, fk_attr in self.reference_fields.items():
            if body_field in data:
                data[fk_attr] = data.pop(body_field)
        data["slug"] = slugify(self.name)
        return data


class CategoryInput(DocumentInput):
    reference_fields: ClassVar[dict[str, str]] = {"parent": "parent_id"}

    description: Optional[str] = None
    parent: Optional[uuid.UUID] = None
    image: Optional[str] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")
    seo_title: Optional[str] = Field(default=None, alias="seoTitle")
    seo_description: Optional[str] = Field(default=None, alias="seoDescription")
    sort_order: Optional[int] = Field(default=None, alias="sortOrder")


class ProductInput(DocumentInput):
    reference_fields: ClassVar[dict[str, str]] = {"category": "category_id"}

    description: str
    price: float = Field(ge=0, allow_inf_nan=False)
    stock: int = Field(ge=0)
    images: list[str]
    category: Optional[uuid.UUID] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")


async def parse_body(request: Request, schema: Type[T]) -> T:
    """
    Read and validate a JSON request body.

    Raises:
        BadRequest: body is not JSON, or fails validation (details list the
            per-field messages and the accepted fields)
    """
    try:
        body = await request.json()
    except ValueError as e:
        raise BadRequest("Invalid request body", "Request body must be valid JSON") from e

    try:
        return schema.model_validate(body)
    except ValidationError as e:
        raise BadRequest(
            "Invalid request body",
            details=format_validation_error(schema, e),
        ) from e
