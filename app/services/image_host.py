import logging

import httpx

from app.core.config import settings
from app.core.errors import ImageUploadError

logger = logging.getLogger(__name__)


async def upload_image(
    content: bytes,
    filename: str,
    content_type: str = "application/octet-stream",
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """
    Upload an image (logo or product photo) to the image host.

    The host answers with {"success": bool, "data": {"url": "..."}}.
    Returns the hosted URL; any failure raises ImageUploadError.
    """
    if not settings.IMGBB_API_KEY:
        raise ImageUploadError("Image hosting is not configured")

    try:
        async with httpx.AsyncClient(
            timeout=settings.IMAGE_UPLOAD_TIMEOUT_SECONDS,
            transport=transport,
        ) as client:
            response = await client.post(
                settings.IMGBB_UPLOAD_URL,
                params={"key": settings.IMGBB_API_KEY},
                files={"image": (filename, content, content_type)},
            )
    except httpx.HTTPError as e:
        logger.warning("Image upload failed: %s", e)
        raise ImageUploadError(f"Image upload failed: {e}") from e

    try:
        payload = response.json()
    except ValueError as e:
        raise ImageUploadError(f"Image host returned invalid JSON (status {response.status_code})") from e

    if not isinstance(payload, dict):
        payload = {}

    url = (payload.get("data") or {}).get("url")
    if response.status_code >= 400 or not payload.get("success") or not url:
        logger.warning("Image host rejected upload: status=%s body=%s", response.status_code, payload)
        raise ImageUploadError(f"Image host rejected upload (status {response.status_code})")

    return url
