"""Pydantic request and response bodies for the dropdown API."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field, field_validator


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str = ""

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v


class CategoryUpdate(BaseModel):
    # The name is fixed once created; only the description can change
    description: str = ""


class Category(BaseModel):
    id: str
    name: str
    description: str
    created_at: str | None = None


class CategoryList(BaseModel):
    categories: List[Category]


class ItemCreate(BaseModel):
    display_text: str = Field(min_length=1)
    value: str | None = None
    sort_order: int | None = Field(default=None, ge=0)
    is_active: bool = True


class ItemUpdate(BaseModel):
    display_text: str | None = None
    value: str | None = None
    is_active: bool | None = None
    sort_order: int | None = Field(default=None, ge=0)


class Item(BaseModel):
    id: str
    category_id: str
    value: str
    display_text: str
    sort_order: int
    is_active: bool
    created_at: str | None = None
    updated_at: str | None = None


class ItemList(BaseModel):
    category_id: str
    items: List[Item]
    etag: str


class PasteListRequest(BaseModel):
    text: str


class PasteListResult(BaseModel):
    created: List[Item]
    etag: str


class ReorderRequest(BaseModel):
    target_order: int = Field(ge=0)


class MoveRequest(BaseModel):
    direction: Literal["up", "down"]


class ItemDelta(BaseModel):
    id: str
    old_order: int
    new_order: int


class ReorderResult(BaseModel):
    """Outcome of a reorder: only the rows that moved, plus the fresh list."""

    category_id: str
    item_id: str
    changed: bool
    deltas: List[ItemDelta]
    repaired: List[ItemDelta] = []
    items: List[Item]
    etag: str


class OptionList(BaseModel):
    category: str
    options: List[str]


__all__ = [
    "CategoryCreate",
    "CategoryUpdate",
    "Category",
    "CategoryList",
    "ItemCreate",
    "ItemUpdate",
    "Item",
    "ItemList",
    "PasteListRequest",
    "PasteListResult",
    "ReorderRequest",
    "MoveRequest",
    "ItemDelta",
    "ReorderResult",
    "OptionList",
]
