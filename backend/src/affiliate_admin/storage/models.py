"""Database models for accounts and affiliates - unified model set."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class UserAccount(Base):
    """User account an affiliate is attached to."""

    __tablename__ = "user_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_login: Mapped[str] = mapped_column(String(60), unique=True, nullable=False, index=True)
    user_email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    display_name: Mapped[str | None] = mapped_column(String(250), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    memberships: Mapped[list["SiteMembership"]] = relationship(
        "SiteMembership", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<UserAccount(id={self.id}, login='{self.user_login}')>"


class SiteMembership(Base):
    """Membership of an account in one site of a multi-site host."""

    __tablename__ = "site_memberships"
    __table_args__ = (UniqueConstraint("user_id", "site_id", name="uq_site_memberships_user_site"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_accounts.id"), nullable=False, index=True
    )
    site_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # Relationships
    user: Mapped["UserAccount"] = relationship("UserAccount", back_populates="memberships")

    def __repr__(self) -> str:
        return f"<SiteMembership(user_id={self.user_id}, site_id={self.site_id})>"


class Affiliate(Base):
    """Affiliate record: commission settings and aggregate counters for one account."""

    __tablename__ = "affiliates"

    affiliate_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # One affiliate per account
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_accounts.id"), nullable=False, unique=True, index=True
    )

    # Commission settings (empty = use the configured default)
    rate: Mapped[str | None] = mapped_column(String(20), nullable=True)
    rate_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    payment_email: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)

    # Counters
    earnings: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    referrals: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    visits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    date_registered: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Affiliate(id={self.affiliate_id}, user_id={self.user_id}, status='{self.status}')>"


# Affiliate data. affiliate_id is deliberately not a foreign key: these rows
# are retained after the affiliate is deleted unless data deletion is requested.


class AffiliateReferral(Base):
    """Referral credited to an affiliate."""

    __tablename__ = "affiliate_referrals"

    referral_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    affiliate_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="unpaid")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<AffiliateReferral(id={self.referral_id}, affiliate_id={self.affiliate_id})>"


class AffiliateVisit(Base):
    """Visit tracked through an affiliate link."""

    __tablename__ = "affiliate_visits"

    visit_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    affiliate_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    referrer: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<AffiliateVisit(id={self.visit_id}, affiliate_id={self.affiliate_id})>"
