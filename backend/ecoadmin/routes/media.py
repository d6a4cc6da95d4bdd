"""
Helpers shared by routes that accept or serve images.

read_upload() turns Starlette's UploadFile into the service-level
ImageUpload; image_response() wraps stored bytes with caching headers.
"""

from typing import Optional

from fastapi import Response, UploadFile

from ecoadmin.services.image_service import ImageUpload

# Stored images never change once written
IMAGE_CACHE_CONTROL = "public, max-age=86400"


async def read_upload(file: Optional[UploadFile]) -> Optional[ImageUpload]:
    if file is None:
        return None
    try:
        content = await file.read()
    finally:
        await file.close()
    return ImageUpload(
        filename=file.filename or "",
        content_type=file.content_type,
        content=content,
    )


def image_response(content: bytes, mime_type: str) -> Response:
    return Response(
        content=content,
        media_type=mime_type,
        headers={"Cache-Control": IMAGE_CACHE_CONTROL},
    )
