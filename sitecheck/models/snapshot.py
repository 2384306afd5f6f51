"""Visual snapshot options and results."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class IgnoreRegion(BaseModel):
    """Rectangle painted black on both images before diffing."""

    x: int = Field(ge=0)
    y: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class SnapshotOptions(BaseModel):
    max_different_pixels: int = 0
    threshold: float = Field(default=0.1, ge=0.0, le=1.0)  # lower = stricter
    ignore_regions: list[IgnoreRegion] = Field(default_factory=list)


class SnapshotResult(BaseModel):
    passed: bool
    message: str = ""
    baseline_created: bool = False
    different_pixels: int = 0
    failed_image_path: Optional[str] = None
    diff_image_path: Optional[str] = None
