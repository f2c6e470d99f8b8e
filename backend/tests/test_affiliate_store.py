"""Affiliate store tests: CRUD, filters, counting and payment-email fallback."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from affiliate_admin.affiliates.store import AffiliateStore
from affiliate_admin.storage.models import AffiliateReferral, AffiliateVisit


def add_data(database, affiliate_id, referrals=2, visits=3):
    with database.session() as session:
        for i in range(referrals):
            session.add(AffiliateReferral(affiliate_id=affiliate_id, amount=1.0 + i))
        for i in range(visits):
            session.add(AffiliateVisit(affiliate_id=affiliate_id, url=f"https://example.com/{i}"))


def count_rows(database, model, affiliate_id):
    with database.session() as session:
        return session.scalar(
            select(func.count()).select_from(model).where(model.affiliate_id == affiliate_id)
        )


class TestCreate:

    def test_create_with_defaults(self, store, alice):
        affiliate = store.create({"user_id": alice.id})
        assert affiliate.affiliate_id > 0
        assert affiliate.user_id == alice.id
        assert affiliate.status == "active"
        assert affiliate.rate is None
        assert affiliate.rate_type is None
        assert affiliate.payment_email is None
        assert affiliate.earnings == 0
        assert affiliate.referrals == 0
        assert affiliate.visits == 0
        assert affiliate.date_registered is not None

    def test_create_with_values(self, store, alice):
        affiliate = store.create({
            "user_id": str(alice.id),
            "payment_email": "pay@example.com",
            "rate": "0.25",
            "rate_type": "flat",
            "status": "inactive",
            "earnings": "10.5",
            "referrals": "4",
            "visits": 20,
        })
        assert affiliate.payment_email == "pay@example.com"
        assert affiliate.rate == "0.25"
        assert affiliate.rate_type == "flat"
        assert affiliate.status == "inactive"
        assert affiliate.earnings == Decimal("10.50")
        assert affiliate.referrals == 4
        assert affiliate.visits == 20

    def test_require_approval_defaults_to_pending(self, temp_db, alice):
        store = AffiliateStore(temp_db, require_approval=True)
        assert store.create({"user_id": alice.id}).status == "pending"

    def test_invalid_status_falls_back_to_default(self, store, alice):
        assert store.create({"user_id": alice.id, "status": "bogus"}).status == "active"

    def test_second_affiliate_for_same_user_rejected(self, store, alice):
        assert store.create({"user_id": alice.id}) is not None
        assert store.create({"user_id": alice.id}) is None
        assert store.count() == 1

    @pytest.mark.parametrize(
        "fields",
        [
            {"payment_email": "nope"},
            {"rate": "abc"},
            {"rate": "-1"},
            {"earnings": "lots"},
            {"earnings": "10000000000"},
        ],
    )
    def test_invalid_values_rejected(self, store, alice, fields):
        assert store.create({"user_id": alice.id, **fields}) is None
        assert store.count() == 0

    @pytest.mark.parametrize(
        "raw,stored",
        [("1234567890.12", Decimal("1234567890.12")), ("0.005", Decimal("0.01")), ("7", Decimal("7.00"))],
    )
    def test_earnings_stored_to_the_cent(self, store, alice, raw, stored):
        affiliate = store.create({"user_id": alice.id, "earnings": raw})
        assert store.get(affiliate.affiliate_id).earnings == stored

    def test_unknown_user_rejected(self, store):
        assert store.create({"user_id": 999}) is None
        assert store.create({}) is None


class TestRead:

    def test_get_and_get_by(self, store, alice):
        created = store.create({"user_id": alice.id})
        assert store.get(created.affiliate_id).user_id == alice.id
        assert store.get(str(created.affiliate_id)).affiliate_id == created.affiliate_id
        assert store.get_by("user_id", alice.id).affiliate_id == created.affiliate_id
        assert store.get_by("user_id", str(alice.id)).affiliate_id == created.affiliate_id

    def test_get_missing(self, store):
        assert store.get(999) is None
        assert store.get(0) is None
        assert store.get_by("user_id", 999) is None

    def test_get_by_unknown_field(self, store):
        with pytest.raises(ValueError):
            store.get_by("user_login", "alice")

    def test_payment_email_falls_back_to_account_email(self, store, alice, bob):
        first = store.create({"user_id": alice.id})
        second = store.create({"user_id": bob.id, "payment_email": "bob-pay@example.com"})
        assert store.get_payment_email(first.affiliate_id) == "alice@example.com"
        assert store.get_payment_email(second.affiliate_id) == "bob-pay@example.com"
        assert store.get_payment_email(999) == ""


class TestUpdate:

    def test_update_fields(self, store, alice):
        affiliate = store.create({"user_id": alice.id})
        assert store.update({
            "affiliate_id": affiliate.affiliate_id,
            "payment_email": "new@example.com",
            "rate": "0.3",
            "rate_type": "flat",
            "status": "inactive",
        })
        updated = store.get(affiliate.affiliate_id)
        assert updated.payment_email == "new@example.com"
        assert updated.rate == "0.3"
        assert updated.rate_type == "flat"
        assert updated.status == "inactive"

    def test_empty_values_leave_fields_unchanged(self, store, alice):
        affiliate = store.create({"user_id": alice.id, "rate": "0.1", "payment_email": "p@example.com"})
        assert store.update({"affiliate_id": affiliate.affiliate_id, "rate": "", "payment_email": ""})
        updated = store.get(affiliate.affiliate_id)
        assert updated.rate == "0.1"
        assert updated.payment_email == "p@example.com"

    def test_account_email_updates_account(self, store, accounts, alice):
        affiliate = store.create({"user_id": alice.id})
        assert store.update({"affiliate_id": affiliate.affiliate_id, "account_email": "alice@new.example.com"})
        assert accounts.get_by_id(alice.id).user_email == "alice@new.example.com"

    def test_account_email_taken_rejected(self, store, accounts, alice, bob):
        affiliate = store.create({"user_id": alice.id})
        assert not store.update({
            "affiliate_id": affiliate.affiliate_id,
            "account_email": "bob@example.com",
            "rate": "0.9",
        })
        assert accounts.get_by_id(alice.id).user_email == "alice@example.com"
        assert store.get(affiliate.affiliate_id).rate is None

    @pytest.mark.parametrize(
        "fields",
        [{"payment_email": "bad"}, {"account_email": "bad"}, {"rate": "x"}, {"status": "bogus"}],
    )
    def test_invalid_values_rejected(self, store, alice, fields):
        affiliate = store.create({"user_id": alice.id})
        assert not store.update({"affiliate_id": affiliate.affiliate_id, **fields})

    def test_missing_affiliate(self, store):
        assert not store.update({"affiliate_id": 999, "rate": "0.1"})


class TestDelete:

    def test_delete_keeps_data_by_default(self, store, temp_db, alice):
        affiliate = store.create({"user_id": alice.id})
        add_data(temp_db, affiliate.affiliate_id)

        assert store.delete(affiliate) is True
        assert store.get(affiliate.affiliate_id) is None
        assert count_rows(temp_db, AffiliateReferral, affiliate.affiliate_id) == 2
        assert count_rows(temp_db, AffiliateVisit, affiliate.affiliate_id) == 3

    def test_delete_with_data(self, store, temp_db, alice, bob):
        affiliate = store.create({"user_id": alice.id})
        other = store.create({"user_id": bob.id})
        add_data(temp_db, affiliate.affiliate_id)
        add_data(temp_db, other.affiliate_id)

        assert store.delete(affiliate.affiliate_id, delete_data=True) is True
        assert count_rows(temp_db, AffiliateReferral, affiliate.affiliate_id) == 0
        assert count_rows(temp_db, AffiliateVisit, affiliate.affiliate_id) == 0
        assert count_rows(temp_db, AffiliateReferral, other.affiliate_id) == 2

    def test_delete_missing(self, store):
        assert store.delete(999) is False


class TestListAndCount:

    @pytest.fixture
    def populated(self, store, accounts):
        created = []
        for i, status in enumerate(["active", "inactive", "pending", "active", "active"]):
            account = accounts.create(f"user{i}", f"user{i}@example.com")
            created.append(store.create({
                "user_id": account.id,
                "status": status,
                "rate_type": "flat" if i % 2 else "percentage",
                "referrals": 10 - i,
            }))
        return created

    def test_default_order_is_newest_first(self, store, populated):
        ids = [a.affiliate_id for a in store.list()]
        assert ids == sorted((a.affiliate_id for a in populated), reverse=True)

    def test_filter_by_status(self, store, populated):
        assert {a.status for a in store.list({"status": "active"})} == {"active"}
        assert len(store.list({"status": "active"})) == 3
        assert len(store.list({"status": "inactive,pending"})) == 2

    def test_filter_by_ids(self, store, populated):
        wanted = f"{populated[0].affiliate_id},{populated[2].affiliate_id}"
        assert len(store.list({"affiliate_id": wanted})) == 2

    def test_filter_by_rate_type(self, store, populated):
        assert len(store.list({"rate_type": "flat"})) == 2

    def test_search_matches_login(self, store, populated):
        results = store.list({"search": "user3"})
        assert [a.affiliate_id for a in results] == [populated[3].affiliate_id]

    def test_paging_and_ordering(self, store, populated):
        page = store.list({"orderby": "referrals", "order": "ASC", "number": 2, "offset": 1})
        assert [a.referrals for a in page] == [7, 8]

    def test_number_defaults_and_unlimited(self, store, populated):
        assert len(store.list({"number": 2})) == 2
        assert len(store.list({"number": "-1"})) == 5

    def test_unknown_filters_ignored(self, store, populated):
        assert len(store.list({"user_login": "user1", "orderby": "nonsense"})) == 5

    def test_count(self, store, populated):
        assert store.count() == 5
        assert store.count({"status": "active"}) == 3
        assert store.count({"status": "active", "number": 1}) == 3

    def test_search_wildcards_match_literally(self, store, accounts, populated):
        for login in ("a_b", "axb"):
            account = accounts.create(login, f"{login}@example.com")
            store.create({"user_id": account.id})

        assert store.list({"search": "%"}) == []
        assert [a.user_id for a in store.list({"search": "a_b"})] == [accounts.get_by_login("a_b").id]
        assert store.count({"search": "_"}) == 1
