"""Affiliate store: persistence for affiliate records."""

from datetime import datetime
from typing import Any

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.exc import IntegrityError

from affiliate_admin.affiliates.entity import (
    AFFILIATE_FIELDS,
    AffiliateStatus,
    is_valid_status,
    sanitize_field,
    to_int,
)
from affiliate_admin.logging_config import get_logger
from affiliate_admin.settings import settings
from affiliate_admin.storage.db import Database
from affiliate_admin.storage.models import (
    Affiliate,
    AffiliateReferral,
    AffiliateVisit,
    UserAccount,
)
from affiliate_admin.validators import is_email, parse_amount, parse_money

logger = get_logger(__name__)

# Filters that narrow the result set (the rest only page/sort it)
MATCH_FILTERS = ("affiliate_id", "user_id", "status", "rate_type", "payment_email", "search")
PAGING_FILTERS = ("number", "offset", "orderby", "order")


def _split(value: Any) -> list[str]:
    """Split a comma-separated filter value."""
    if isinstance(value, (list, tuple, set)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [v.strip() for v in str(value).split(",") if v.strip()]


def _escape_like(value: str) -> str:
    """Make LIKE wildcards in a search term match literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class AffiliateStore:
    """Repository for Affiliate entities."""

    def __init__(self, database: Database, require_approval: bool | None = None):
        """Initialize affiliate store.

        Args:
            database: Database instance
            require_approval: New affiliates default to 'pending' (defaults to settings)
        """
        self.db = database
        self.require_approval = (
            settings.require_approval if require_approval is None else require_approval
        )

    @property
    def default_status(self) -> str:
        if self.require_approval:
            return AffiliateStatus.PENDING.value
        return AffiliateStatus.ACTIVE.value

    # ==================== READ ====================

    def get(self, affiliate_id) -> Affiliate | None:
        """Get affiliate by ID."""
        affiliate_id = sanitize_field("affiliate_id", affiliate_id)
        if affiliate_id <= 0:
            return None
        with self.db.session() as session:
            return session.get(Affiliate, affiliate_id)

    def get_by(self, field: str, value: Any) -> Affiliate | None:
        """Get the first affiliate whose `field` equals `value`.

        Raises:
            ValueError: If field is not an affiliate column
        """
        if field not in AFFILIATE_FIELDS:
            raise ValueError(f"Unknown affiliate field: {field}")
        with self.db.session() as session:
            return session.scalar(
                select(Affiliate)
                .where(getattr(Affiliate, field) == sanitize_field(field, value))
                .limit(1)
            )

    def get_payment_email(self, affiliate_id) -> str:
        """Get the payment email, falling back to the account email."""
        affiliate_id = sanitize_field("affiliate_id", affiliate_id)
        with self.db.session() as session:
            affiliate = session.get(Affiliate, affiliate_id)
            if not affiliate:
                return ""
            if affiliate.payment_email:
                return affiliate.payment_email
            account = session.get(UserAccount, affiliate.user_id)
            return account.user_email if account else ""

    # ==================== WRITE ====================

    def create(self, fields: dict[str, Any]) -> Affiliate | None:
        """Create an affiliate.

        Empty values fall back to store defaults: no rate or rate type
        (system default), no payment email (account email), and the
        configured default status.

        Args:
            fields: user_id plus any of payment_email, rate, rate_type,
                status, earnings, referrals, visits

        Returns:
            Created affiliate, or None if the data was rejected
        """
        user_id = sanitize_field("user_id", fields.get("user_id"))
        if user_id <= 0:
            logger.warning("affiliate_rejected", reason="missing_user_id")
            return None

        payment_email = (fields.get("payment_email") or "").strip()
        if payment_email and not is_email(payment_email):
            logger.warning("affiliate_rejected", reason="invalid_payment_email", user_id=user_id)
            return None

        rate = str(fields.get("rate") or "").strip()
        if rate and parse_amount(rate) is None:
            logger.warning("affiliate_rejected", reason="invalid_rate", user_id=user_id, rate=rate)
            return None

        earnings = parse_money(fields.get("earnings") or 0)
        if earnings is None:
            logger.warning("affiliate_rejected", reason="invalid_earnings", user_id=user_id)
            return None

        status = fields.get("status") or ""
        if not is_valid_status(status):
            status = self.default_status

        try:
            with self.db.session() as session:
                if not session.get(UserAccount, user_id):
                    logger.warning("affiliate_rejected", reason="unknown_user", user_id=user_id)
                    return None

                affiliate = Affiliate(
                    user_id=user_id,
                    rate=rate or None,
                    rate_type=(fields.get("rate_type") or "").strip() or None,
                    payment_email=payment_email or None,
                    status=status,
                    earnings=earnings,
                    referrals=max(0, sanitize_field("referrals", fields.get("referrals"))),
                    visits=max(0, sanitize_field("visits", fields.get("visits"))),
                    date_registered=datetime.utcnow(),
                )
                session.add(affiliate)
                session.flush()
        except IntegrityError:
            # UNIQUE(user_id): another affiliate was created for this account
            logger.warning("affiliate_rejected", reason="duplicate_user", user_id=user_id)
            return None

        logger.info("affiliate_created", affiliate_id=affiliate.affiliate_id, user_id=user_id)
        return affiliate

    def update(self, fields: dict[str, Any]) -> bool:
        """Update an affiliate in place.

        Empty values mean "no change". `account_email` updates the email of
        the linked account in the same transaction.

        Args:
            fields: affiliate_id plus any of account_email, payment_email,
                rate, rate_type, status

        Returns:
            True if the affiliate was updated
        """
        affiliate_id = sanitize_field("affiliate_id", fields.get("affiliate_id"))

        payment_email = (fields.get("payment_email") or "").strip()
        account_email = (fields.get("account_email") or "").strip()
        rate = str(fields.get("rate") or "").strip()
        rate_type = (fields.get("rate_type") or "").strip()
        status = fields.get("status") or ""

        for label, email in (("payment_email", payment_email), ("account_email", account_email)):
            if email and not is_email(email):
                logger.warning("affiliate_update_rejected", affiliate_id=affiliate_id, reason=f"invalid_{label}")
                return False
        if rate and parse_amount(rate) is None:
            logger.warning("affiliate_update_rejected", affiliate_id=affiliate_id, reason="invalid_rate")
            return False
        if status and not is_valid_status(status):
            logger.warning("affiliate_update_rejected", affiliate_id=affiliate_id, reason="invalid_status")
            return False

        try:
            with self.db.session() as session:
                affiliate = session.get(Affiliate, affiliate_id)
                if not affiliate:
                    logger.warning("affiliate_not_found", affiliate_id=affiliate_id)
                    return False

                if account_email:
                    account = session.get(UserAccount, affiliate.user_id)
                    if not account:
                        logger.warning("account_not_found", user_id=affiliate.user_id)
                        return False
                    account.user_email = account_email

                if payment_email:
                    affiliate.payment_email = payment_email
                if rate:
                    affiliate.rate = rate
                if rate_type:
                    affiliate.rate_type = rate_type
                if status:
                    affiliate.status = status

                session.flush()
        except IntegrityError:
            logger.warning("affiliate_update_rejected", affiliate_id=affiliate_id, reason="email_taken")
            return False

        logger.info("affiliate_updated", affiliate_id=affiliate_id)
        return True

    def delete(self, affiliate: Affiliate | int, delete_data: bool = False) -> bool:
        """Delete an affiliate.

        Args:
            affiliate: Affiliate or affiliate ID
            delete_data: Also delete the affiliate's referrals and visits

        Returns:
            True if the affiliate was deleted
        """
        if isinstance(affiliate, Affiliate):
            affiliate_id = affiliate.affiliate_id
        else:
            affiliate_id = sanitize_field("affiliate_id", affiliate)

        with self.db.session() as session:
            existing = session.get(Affiliate, affiliate_id)
            if not existing:
                logger.warning("affiliate_not_found", affiliate_id=affiliate_id)
                return False

            session.delete(existing)

            if delete_data:
                referrals = session.execute(
                    delete(AffiliateReferral).where(AffiliateReferral.affiliate_id == affiliate_id)
                ).rowcount
                visits = session.execute(
                    delete(AffiliateVisit).where(AffiliateVisit.affiliate_id == affiliate_id)
                ).rowcount
                logger.info(
                    "affiliate_data_deleted",
                    affiliate_id=affiliate_id,
                    referrals=referrals,
                    visits=visits,
                )

        logger.info("affiliate_deleted", affiliate_id=affiliate_id, delete_data=delete_data)
        return True

    # ==================== QUERY ====================

    def list(self, filters: dict[str, Any] | None = None) -> list[Affiliate]:
        """List affiliates matching filters.

        Args:
            filters: Field filters plus number, offset, orderby and order

        Returns:
            Matching affiliates
        """
        filters = filters or {}
        stmt = self._apply_filters(select(Affiliate), filters)

        orderby = str(filters.get("orderby") or "affiliate_id")
        if orderby not in AFFILIATE_FIELDS:
            logger.debug("orderby_ignored", orderby=orderby)
            orderby = "affiliate_id"
        column = getattr(Affiliate, orderby)
        if str(filters.get("order") or "DESC").upper() == "ASC":
            stmt = stmt.order_by(column.asc(), Affiliate.affiliate_id.asc())
        else:
            stmt = stmt.order_by(column.desc(), Affiliate.affiliate_id.desc())

        number = to_int(filters.get("number", settings.default_list_number))
        if number > 0:
            stmt = stmt.limit(number)
        offset = max(0, to_int(filters.get("offset", 0)))
        if offset:
            stmt = stmt.offset(offset)

        with self.db.session() as session:
            return list(session.scalars(stmt))

    def count(self, filters: dict[str, Any] | None = None) -> int:
        """Count affiliates matching filters (paging is ignored)."""
        stmt = self._apply_filters(select(func.count(Affiliate.affiliate_id)), filters or {})
        with self.db.session() as session:
            return session.scalar(stmt) or 0

    def _apply_filters(self, stmt: Select, filters: dict[str, Any]) -> Select:
        for key, value in filters.items():
            if key in PAGING_FILTERS:
                continue
            if key not in MATCH_FILTERS:
                logger.debug("filter_ignored", filter=key)
                continue
            if value is None or value == "":
                continue

            if key in ("affiliate_id", "user_id"):
                ids = [sanitize_field(key, v) for v in _split(value)]
                stmt = stmt.where(getattr(Affiliate, key).in_(ids))
            elif key == "status":
                stmt = stmt.where(Affiliate.status.in_(_split(value)))
            elif key == "search":
                pattern = f"%{_escape_like(str(value))}%"
                stmt = stmt.join(UserAccount, UserAccount.id == Affiliate.user_id).where(
                    or_(
                        Affiliate.payment_email.ilike(pattern, escape="\\"),
                        UserAccount.user_login.ilike(pattern, escape="\\"),
                    )
                )
            else:
                stmt = stmt.where(getattr(Affiliate, key) == str(value))
        return stmt
