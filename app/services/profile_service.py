import logging
from datetime import datetime

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import ProfileNotFound, SlugCollision
from app.models import BusinessProfile
from app.schemas.profile import Product, ProfileUpdate
from app.services.slugs import normalize_slug

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_NAME = "منتج جديد"
DEFAULT_PRODUCT_DESCRIPTION = "وصف المنتج هنا"


class ProfileService:
    """
    Business profile persistence.

    The catalog (products) and FAQs live inside the profile row as JSON lists,
    so every catalog change is a whole-profile save.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile(self, profile_id: str) -> BusinessProfile:
        result = await self.db.execute(
            select(BusinessProfile).where(BusinessProfile.id == profile_id)
        )
        profile = result.scalar_one_or_none()
        if not profile:
            raise ProfileNotFound(f"Profile not found: {profile_id}")
        return profile

    async def resolve_public(self, slug_or_id: str) -> BusinessProfile:
        """Find a profile by slug, falling back to its id (older links use the id)."""
        result = await self.db.execute(
            select(BusinessProfile).where(
                or_(
                    BusinessProfile.slug == slug_or_id.lower(),
                    BusinessProfile.id == slug_or_id,
                )
            )
        )
        profiles = result.scalars().all()
        if not profiles:
            raise ProfileNotFound(f"Profile not available: {slug_or_id}")

        for profile in profiles:
            if profile.slug == slug_or_id.lower():
                return profile
        return profiles[0]

    async def save_profile(self, profile_id: str, payload: ProfileUpdate) -> BusinessProfile:
        """Overwrite every editable field of the profile (the dashboard's "save all")."""
        profile = await self.get_profile(profile_id)

        slug = normalize_slug(payload.slug) or normalize_slug(profile.id)

        result = await self.db.execute(
            select(BusinessProfile.id).where(
                BusinessProfile.slug == slug,
                BusinessProfile.id != profile_id,
            )
        )
        if result.first():
            raise SlugCollision(f"Slug {slug} is already taken")

        profile.slug = slug
        profile.name = payload.name
        profile.owner_name = payload.owner_name
        profile.description = payload.description
        profile.meta_description = payload.meta_description
        profile.phone = payload.phone
        profile.logo = payload.logo
        profile.social_links = dict(payload.social_links)
        profile.products = [p.model_dump() for p in payload.products]
        profile.faqs = [f.model_dump() for f in payload.faqs]
        profile.currency = payload.currency
        profile.return_policy = payload.return_policy
        profile.delivery_policy = payload.delivery_policy
        profile.ai_enabled = payload.ai_enabled
        profile.ai_business_info = payload.ai_business_info or ""
        profile.updated_at = datetime.utcnow()

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise SlugCollision(f"Slug {slug} is already taken") from e

        return profile

    async def add_product(self, profile_id: str, product: Product | None = None) -> BusinessProfile:
        """Append a product (a placeholder one by default) and save the profile."""
        profile = await self.get_profile(profile_id)

        if product is None:
            product = Product(
                name=DEFAULT_PRODUCT_NAME,
                price=0,
                description=DEFAULT_PRODUCT_DESCRIPTION,
                image=settings.DEFAULT_PRODUCT_IMAGE_URL,
            )

        profile.products = [*(profile.products or []), product.model_dump()]
        profile.updated_at = datetime.utcnow()
        await self.db.commit()
        return profile

    async def remove_product(self, profile_id: str, product_id: str) -> BusinessProfile:
        profile = await self.get_profile(profile_id)

        remaining = [p for p in (profile.products or []) if str(p.get("id")) != product_id]
        if len(remaining) == len(profile.products or []):
            logger.info("Product %s not in profile %s", product_id, profile_id)

        profile.products = remaining
        profile.updated_at = datetime.utcnow()
        await self.db.commit()
        return profile
