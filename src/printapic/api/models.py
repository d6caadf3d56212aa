"""Pydantic models for API request payloads."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class EditRequest(BaseModel):
    """Body of POST /edits."""

    model_config = ConfigDict(populate_by_name=True)

    photo_id: UUID = Field(alias="photoId")
    operation: str = Field(min_length=1)
    instruction_key: str | None = Field(default=None, alias="instructionKey")


class OrderLineRequest(BaseModel):
    """One print in an order."""

    model_config = ConfigDict(populate_by_name=True)

    photo_id: UUID = Field(alias="photoId")
    edit_id: UUID = Field(alias="editId")
    size: str
    quantity: int = 1


class OrderRequest(BaseModel):
    """Body of POST /orders."""

    items: list[OrderLineRequest]


class TokenCreditRequest(BaseModel):
    """Body of POST /admin/users/{id}/tokens."""

    tokens: int = Field(gt=0)
