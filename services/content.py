from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


class FaqItem(BaseModel):
    question: str
    answer: str


class FaqDocument(BaseModel):
    faqs: List[FaqItem] = Field(default_factory=list)


class TattooTypeOption(BaseModel):
    value: str
    label: str


class BookingInfoDocument(BaseModel):
    procedure: List[str] = Field(default_factory=list)
    additionalInfo: List[str] = Field(default_factory=list)
    tattooTypes: List[TattooTypeOption] = Field(default_factory=list)
    bodyParts: List[str] = Field(default_factory=list)


class GalleryDocument(BaseModel):
    designs: List[Dict[str, Any]] = Field(default_factory=list)


class ContentLibrary:
    """Static JSON documents shipped with the site."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _read(self, name: str) -> Dict[str, Any]:
        path = self.root / name
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def gallery(self) -> GalleryDocument:
        return GalleryDocument.model_validate(self._read("designs.json"))

    def faq(self) -> FaqDocument:
        return FaqDocument.model_validate(self._read("faq.json"))

    def booking_info(self) -> BookingInfoDocument:
        return BookingInfoDocument.model_validate(self._read("booking.json"))

    def schedule_path(self) -> Path:
        return self.root / "schedule.json"


@lru_cache(maxsize=4)
def get_content_library(root: str) -> ContentLibrary:
    return ContentLibrary(root)
