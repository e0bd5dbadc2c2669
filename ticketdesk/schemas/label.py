from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import ApiModel, ApiOut

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class LabelCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = Field(default=None, pattern=COLOR_PATTERN)


class LabelOut(ApiOut):
    id: int
    name: str
    color: str


class LabelAttach(ApiModel):
    label_id: int


class LabelResponse(ApiModel):
    message: Optional[str] = None
    label: LabelOut


class LabelListResponse(ApiModel):
    labels: list[LabelOut]
