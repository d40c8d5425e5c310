from datetime import datetime
from sqlalchemy import String, Text, Boolean, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from app.core.database import Base

JSONColumn = JSON().with_variant(JSONB(), "postgresql")


class BusinessProfile(Base):
    """Storefront of one business: identity, catalog, FAQs, policies and AI settings."""
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    owner_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    country_code: Mapped[str | None] = mapped_column(String(8), nullable=True)
    logo: Mapped[str | None] = mapped_column(Text, nullable=True)

    social_links: Mapped[dict] = mapped_column(JSONColumn, default=dict)
    products: Mapped[list] = mapped_column(JSONColumn, default=list)
    faqs: Mapped[list] = mapped_column(JSONColumn, default=list)

    currency: Mapped[str | None] = mapped_column(String(8), nullable=True)
    return_policy: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivery_policy: Mapped[str | None] = mapped_column(Text, nullable=True)

    ai_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    ai_business_info: Mapped[str | None] = mapped_column(Text, nullable=True, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)
