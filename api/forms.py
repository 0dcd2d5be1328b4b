from __future__ import annotations

import json
from typing import Optional

from fastapi import UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from schemas.admin import DesignFields
from services.storage import UploadBlob


def parse_design_form(
    name: str,
    description: Optional[str],
    category: Optional[str],
    sizes: Optional[str],
    available: bool = True,
) -> DesignFields:
    """Build design fields from multipart form values; ``sizes`` is a JSON list."""
    try:
        parsed_sizes = json.loads(sizes) if sizes else []
    except json.JSONDecodeError:
        raise RequestValidationError(
            [{"loc": ("body", "sizes"), "msg": "sizes must be a JSON list", "type": "value_error"}]
        )
    try:
        return DesignFields.model_validate(
            {
                "name": name,
                "description": description,
                "category": category,
                "available": available,
                "sizes": parsed_sizes,
            }
        )
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False))


async def read_upload(upload: Optional[UploadFile]) -> Optional[UploadBlob]:
    if upload is None or not upload.filename:
        return None
    return UploadBlob(upload.filename, await upload.read(), upload.content_type)
