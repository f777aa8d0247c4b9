"""
Unit Tests for users, partnerships and gratitude entries
"""

import pytest
from decimal import Decimal

from sharing.exceptions import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from sharing.models import (
    CreateUserRequest,
    UserUpdate,
    CreatePartnershipRequest,
    CreateGratitudeRequest,
    GratitudeUpdate,
    PartnershipStatus,
)


class TestUsers:
    def test_create_and_get(self, users):
        created = users.create(CreateUserRequest(
            email="carol@example.com", name="Carol", wallet_address="0xabc",
        ))

        fetched = users.get(created.id)
        assert fetched.email == "carol@example.com"
        assert fetched.wallet_address == "0xabc"

    def test_duplicate_email_conflicts(self, users):
        users.create(CreateUserRequest(email="dup@example.com"))

        with pytest.raises(ConflictError):
            users.create(CreateUserRequest(email="dup@example.com"))

    def test_update_changes_only_given_fields(self, users):
        user = users.create(CreateUserRequest(email="dan@example.com", name="Dan"))

        updated = users.update(user.id, UserUpdate(wallet_address="0xdef"))

        assert updated.wallet_address == "0xdef"
        assert updated.name == "Dan"

    def test_update_to_taken_email_conflicts(self, users):
        users.create(CreateUserRequest(email="erin@example.com"))
        frank = users.create(CreateUserRequest(email="frank@example.com"))

        with pytest.raises(ConflictError):
            users.update(frank.id, UserUpdate(email="erin@example.com"))

    def test_soft_deleted_user_is_not_found(self, users):
        user = users.create(CreateUserRequest(email="gone@example.com"))

        users.delete(user.id)

        with pytest.raises(NotFoundError):
            users.get(user.id)


class TestPartnerships:
    """Tests for the partnership status machine."""

    def test_new_partnership_is_active(self, partnership):
        assert partnership.status == PartnershipStatus.ACTIVE
        assert partnership.user_a_id != partnership.user_b_id

    def test_same_user_twice_is_rejected(self, users, partnerships):
        solo = users.create(CreateUserRequest(email="solo@example.com"))

        with pytest.raises(ValidationError):
            partnerships.create(CreatePartnershipRequest(user_a_id=solo.id, user_b_id=solo.id))

    def test_unknown_user_is_rejected(self, users, partnerships):
        known = users.create(CreateUserRequest(email="known@example.com"))

        with pytest.raises(NotFoundError):
            partnerships.create(CreatePartnershipRequest(user_a_id=known.id, user_b_id=known.id + 100))

    def test_toggle_active_and_inactive(self, partnerships, partnership):
        paused = partnerships.set_status(partnership.id, PartnershipStatus.INACTIVE)
        assert paused.status == PartnershipStatus.INACTIVE

        resumed = partnerships.set_status(partnership.id, PartnershipStatus.ACTIVE)
        assert resumed.status == PartnershipStatus.ACTIVE

    def test_cannot_set_split_directly(self, partnerships, partnership):
        with pytest.raises(InvalidStateTransitionError):
            partnerships.set_status(partnership.id, PartnershipStatus.SPLIT)

    def test_split_is_terminal(self, wallet, partnerships, partnership, contribute):
        contribute("10.00")
        wallet.split(partnership.id)

        with pytest.raises(InvalidStateTransitionError):
            partnerships.set_status(partnership.id, PartnershipStatus.ACTIVE)

    def test_list_for_user(self, users, partnerships, partnership):
        listed = partnerships.list_for_user(partnership.user_b_id)

        assert [p.id for p in listed] == [partnership.id]


class TestGratitude:
    def test_entry_does_not_touch_balance(self, gratitude, wallet, partnership):
        entry = gratitude.create(CreateGratitudeRequest(
            user_id=partnership.user_a_id,
            partnership_id=partnership.id,
            content="Thanks for cooking dinner",
            amount=Decimal("5.00"),
        ))

        assert entry.amount == Decimal("5.00")
        assert wallet.get_balance(partnership.id).balance == Decimal("0.00")

    def test_listings_newest_first(self, gratitude, partnership):
        first = gratitude.create(CreateGratitudeRequest(
            user_id=partnership.user_a_id, partnership_id=partnership.id, content="One",
        ))
        second = gratitude.create(CreateGratitudeRequest(
            user_id=partnership.user_a_id, partnership_id=partnership.id, content="Two",
        ))
        gratitude.create(CreateGratitudeRequest(
            user_id=partnership.user_b_id, partnership_id=partnership.id, content="Three",
        ))

        assert [e.id for e in gratitude.list_for_user(partnership.user_a_id)] == [second.id, first.id]
        assert len(gratitude.list_for_partnership(partnership.id)) == 3

    def test_update_and_delete(self, gratitude, partnership):
        entry = gratitude.create(CreateGratitudeRequest(
            user_id=partnership.user_a_id, partnership_id=partnership.id, content="Draft",
        ))

        updated = gratitude.update(entry.id, GratitudeUpdate(content="Thanks for the walk"))
        assert updated.content == "Thanks for the walk"
        assert updated.amount == Decimal("0.00")

        gratitude.delete(entry.id)
        assert gratitude.list_for_user(partnership.user_a_id) == []
        with pytest.raises(NotFoundError):
            gratitude.update(entry.id, GratitudeUpdate(content="Again"))
