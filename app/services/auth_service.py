import logging
import time
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import DuplicatePhone, InvalidCredentials, ProfileNotFound, SlugCollision
from app.core.security import hash_password, verify_password
from app.models import User, BusinessProfile, CountryCode, COUNTRY_DIAL_PREFIXES
from app.services.slugs import generate_slug, random_token, with_suffix

logger = logging.getLogger(__name__)

DEFAULT_SHOP_NAME = "متجري الجديد"
DEFAULT_RETURN_POLICY = "الاسترجاع متاح خلال 14 يوماً من تاريخ الشراء."
DEFAULT_DELIVERY_POLICY = "التوصيل خلال 48 ساعة."


def build_full_phone(phone: str, country_code: CountryCode | str) -> str:
    """Prefix a local number with the country's dial code. Numbers starting with + are kept."""
    phone = phone.strip().replace(" ", "")
    if phone.startswith("+"):
        return phone
    return f"{COUNTRY_DIAL_PREFIXES[CountryCode(country_code)]}{phone}"


class AuthService:
    """
    Owner accounts and their business profiles.

    Handles:
    - Signup: user + profile creation with a unique slug
    - Login: phone + password check
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_phone(self, phone: str) -> User | None:
        result = await self.db.execute(select(User).where(User.phone == phone))
        return result.scalar_one_or_none()

    async def register(
        self,
        phone: str,
        password: str,
        full_name: str,
        country_code: CountryCode | str = CountryCode.SA,
    ) -> tuple[User, BusinessProfile]:
        """
        Create an owner account and its business profile.

        The slug is derived from full_name. If the insert hits a unique
        constraint, it is retried exactly once with a random suffix; a second
        failure raises SlugCollision.
        """
        country_code = CountryCode(country_code)
        full_phone = build_full_phone(phone, country_code)

        if await self.get_user_by_phone(full_phone):
            raise DuplicatePhone(f"Phone already registered: {full_phone}")

        user_id = f"u_{int(time.time() * 1000)}_{random_token(4)}"
        business_id = f"biz_{random_token(9)}"
        password_hash = hash_password(password)
        initial_slug = generate_slug(full_name)

        try:
            return await self._insert_account(
                user_id, business_id, full_phone, password_hash, full_name, country_code, initial_slug
            )
        except IntegrityError:
            await self.db.rollback()
            if await self.get_user_by_phone(full_phone):
                raise DuplicatePhone(f"Phone already registered: {full_phone}")

        final_slug = with_suffix(initial_slug)
        logger.info("Slug %s already taken, retrying with %s", initial_slug, final_slug)

        try:
            return await self._insert_account(
                user_id, business_id, full_phone, password_hash, full_name, country_code, final_slug
            )
        except IntegrityError as e:
            await self.db.rollback()
            if await self.get_user_by_phone(full_phone):
                raise DuplicatePhone(f"Phone already registered: {full_phone}")
            raise SlugCollision(f"Slug {final_slug} is already taken") from e

    async def _insert_account(
        self,
        user_id: str,
        business_id: str,
        full_phone: str,
        password_hash: str,
        full_name: str,
        country_code: CountryCode,
        slug: str,
    ) -> tuple[User, BusinessProfile]:
        now = datetime.utcnow()

        profile = BusinessProfile(
            id=business_id,
            slug=slug,
            name=full_name or DEFAULT_SHOP_NAME,
            owner_name=full_name,
            phone=full_phone,
            country_code=country_code.value,
            logo=settings.DEFAULT_LOGO_URL,
            social_links={},
            products=[],
            faqs=[],
            currency="SAR" if country_code == CountryCode.SA else "USD",
            return_policy=DEFAULT_RETURN_POLICY,
            delivery_policy=DEFAULT_DELIVERY_POLICY,
            ai_enabled=False,
            ai_business_info="",
            created_at=now,
            updated_at=now,
        )
        user = User(
            id=user_id,
            phone=full_phone,
            password_hash=password_hash,
            business_id=business_id,
            created_at=now,
        )

        # Profile first so a slug clash surfaces before the user row exists
        self.db.add(profile)
        await self.db.flush()
        self.db.add(user)
        await self.db.commit()

        logger.info("Registered %s with profile %s (slug=%s)", user_id, business_id, slug)
        return user, profile

    async def login(
        self,
        phone: str,
        password: str,
        country_code: CountryCode | str = CountryCode.SA,
    ) -> tuple[User, BusinessProfile]:
        """Return the user and profile for an exact phone + password match."""
        full_phone = build_full_phone(phone, country_code)

        user = await self.get_user_by_phone(full_phone)
        if not user or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", full_phone)
            raise InvalidCredentials("Invalid phone or password")

        result = await self.db.execute(
            select(BusinessProfile).where(BusinessProfile.id == user.business_id)
        )
        profile = result.scalar_one_or_none()
        if not profile:
            raise ProfileNotFound(f"Profile not found: {user.business_id}")

        return user, profile
