from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from Model.grid_state import GridModel, ImageBounds


@dataclass
class ImageState:
    path: Optional[str] = None
    original: Optional["QImage"] = None      # decoded source, natural size
    data: Optional[bytes] = None             # raw encoded bytes, sent as-is to the server
    bounds: Optional[ImageBounds] = None
    version: int = 0                         # bumped on every load / clear
    grid: GridModel = field(default_factory=GridModel)

    # Result of the last successful client-side cut, waiting for "Download Zip"
    cut_images: list[bytes] = field(default_factory=list)

    @property
    def loaded(self) -> bool:
        return self.original is not None and self.bounds is not None
