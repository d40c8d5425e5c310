import time

from pydantic import Field, field_validator

from app.schemas.base import CamelModel
from app.services.slugs import random_token


def _millis_id() -> str:
    # <ms><4 random chars>, unique within one millisecond too
    return f"{int(time.time() * 1000)}{random_token(4)}"


# ============== Catalog Schemas ==============

class Product(CamelModel):
    """One catalog item. Stored inside the profile's products JSON list."""
    id: str = Field(default_factory=_millis_id)
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(0, ge=0)
    description: str = ""
    image: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        return str(value)


class FAQ(CamelModel):
    id: str = Field(default_factory=_millis_id)
    question: str = Field(..., min_length=1)
    answer: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        return str(value)


# ============== Profile Schemas ==============

class PublicProfileResponse(CamelModel):
    """What the public chat page needs to render a storefront."""
    id: str
    slug: str
    name: str
    owner_name: str | None = None
    description: str | None = None
    meta_description: str | None = None
    phone: str | None = None
    country_code: str | None = None
    logo: str | None = None
    social_links: dict[str, str] = Field(default_factory=dict)
    products: list[Product] = Field(default_factory=list)
    faqs: list[FAQ] = Field(default_factory=list)
    currency: str | None = None
    return_policy: str | None = None
    delivery_policy: str | None = None

    @field_validator("social_links", "products", "faqs", mode="before")
    @classmethod
    def _empty_when_null(cls, value, info):
        # Rows written before these columns existed hold NULL
        if value is None:
            return {} if info.field_name == "social_links" else []
        return value


class ProfileResponse(PublicProfileResponse):
    """Owner view: the public fields plus AI auto-responder settings."""
    ai_enabled: bool = False
    ai_business_info: str | None = ""

    @field_validator("ai_enabled", mode="before")
    @classmethod
    def _false_when_null(cls, value):
        return bool(value)


class ProfileUpdate(CamelModel):
    """
    Full profile overwrite from the dashboard's "save all".

    Every editable field is written; omitted fields fall back to these defaults,
    not to the stored values.
    """
    slug: str = Field(..., min_length=1, max_length=120)
    name: str = Field(..., min_length=1, max_length=200)
    owner_name: str | None = None
    description: str | None = None
    meta_description: str | None = None
    phone: str | None = None
    logo: str | None = None
    social_links: dict[str, str] = Field(default_factory=dict)
    products: list[Product] = Field(default_factory=list)
    faqs: list[FAQ] = Field(default_factory=list)
    currency: str | None = None
    return_policy: str | None = None
    delivery_policy: str | None = None
    ai_enabled: bool = False
    ai_business_info: str | None = ""


class ImageUploadResponse(CamelModel):
    url: str
