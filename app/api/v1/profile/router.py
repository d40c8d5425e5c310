from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import ImageUploadError, ProfileNotFound, SlugCollision
from app.core.security import get_current_user
from app.models import User
from app.schemas.profile import ProfileResponse, ProfileUpdate, Product, ImageUploadResponse
from app.services.image_host import upload_image
from app.services.profile_service import ProfileService

router = APIRouter()

MAX_IMAGE_BYTES = 5 * 1024 * 1024


@router.get("", response_model=ProfileResponse)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await ProfileService(db).get_profile(current_user.business_id)
    except ProfileNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("", response_model=ProfileResponse)
async def save_profile(
    request: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Save the whole profile (identity, catalog, FAQs, policies, AI settings).

    The slug is normalized to [a-z0-9_-]. Returns the stored snapshot, which
    the client caches as the logged-in user's profile.
    """
    try:
        return await ProfileService(db).save_profile(current_user.business_id, request)
    except ProfileNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SlugCollision as e:
        raise HTTPException(status_code=409, detail=str(e))


# ==================== CATALOG ====================

@router.post("/products", response_model=ProfileResponse)
async def add_product(
    request: Product | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Append a product; with no body a placeholder product is added for editing."""
    try:
        return await ProfileService(db).add_product(current_user.business_id, request)
    except ProfileNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/products/{product_id}", response_model=ProfileResponse)
async def remove_product(
    product_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await ProfileService(db).remove_product(current_user.business_id, product_id)
    except ProfileNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# ==================== IMAGES ====================

@router.post("/images", response_model=ImageUploadResponse)
async def upload_profile_image(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    """Forward a logo/product image to the image host and return its URL."""
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(content) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image is too large")

    try:
        url = await upload_image(
            content,
            file.filename or "image",
            file.content_type or "application/octet-stream",
        )
    except ImageUploadError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return ImageUploadResponse(url=url)
