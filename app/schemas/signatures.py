"""Signature annotation schemas."""
from datetime import datetime
from typing import Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt, model_validator

from app.models.signature import SignatureStatus

Number = Union[StrictInt, StrictFloat]


class ScreenPlacement(BaseModel):
    """A click on the rendered page, converted server-side to document space."""
    pointer_x: Number
    pointer_y: Number
    container_left: Number = 0
    container_top: Number = 0
    rendered_page_width: Number | None = None
    intrinsic_page_width: Number | None = None


class DragDelta(BaseModel):
    """On-screen drag distance plus the geometry of the page it happened on."""
    delta_x: Number = 0
    delta_y: Number = 0
    rendered_page_width: Number | None = None
    intrinsic_page_width: Number | None = None


class SignatureCreate(BaseModel):
    page: StrictInt
    # Document-space position; alternatively send `screen`
    x: Number | None = None
    y: Number | None = None
    screen: ScreenPlacement | None = None

    text: str | None = Field(None, max_length=255)
    font: str | None = Field(None, max_length=64)
    font_size: Number | None = None
    color: str | None = Field(None, max_length=7)

    @model_validator(mode="after")
    def position_given(self):
        if self.screen is None and (self.x is None or self.y is None):
            raise ValueError("Provide x and y, or a screen placement")
        return self


class SignatureUpdate(BaseModel):
    """Partial update: only fields present in the request body are applied."""
    x: Number | None = None
    y: Number | None = None
    drag: DragDelta | None = None
    text: str | None = Field(None, max_length=255)
    font: str | None = Field(None, max_length=64)
    font_size: Number | None = None
    color: str | None = Field(None, max_length=7)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True, exclude={"drag"})


class SignatureStatusUpdate(BaseModel):
    status: SignatureStatus
    reason: str | None = Field(None, max_length=1000)


class SignatureResponse(BaseModel):
    id: int
    document_id: int
    user_id: int | None = None
    page: int
    x: float
    y: float
    text: str
    font: str
    font_size: float
    color: str
    status: SignatureStatus
    rejection_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
