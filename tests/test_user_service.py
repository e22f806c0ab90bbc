"""
Tests for the account handlers
"""
import pytest
from sqlalchemy.exc import OperationalError

from phoneverify.core.errors import EmailAlreadyRegistered, InvalidAccountState, StorageError
from phoneverify.services.user_service import UserService


def test_create_user_starts_unverified(db):
    user = UserService.create_user(db, email="a@x.com", first_name="A")

    assert user.id is not None
    assert user.phone_number is None
    assert user.phone_verified is False
    assert user.created_at is not None
    assert user.updated_at is not None


def test_create_user_duplicate_email(db):
    UserService.create_user(db, email="a@x.com", first_name="A")

    with pytest.raises(EmailAlreadyRegistered) as exc_info:
        UserService.create_user(db, email="a@x.com", first_name="B")

    assert exc_info.value.message == "User with this email already exists"


def test_get_user_and_by_email(db, user):
    assert UserService.get_user(db, user.id).email == "test@example.com"
    assert UserService.get_user_by_email(db, "test@example.com").id == user.id
    assert UserService.get_user(db, 9999) is None
    assert UserService.get_user_by_email(db, "nobody@example.com") is None


def test_update_user_partial(db, user):
    updated = UserService.update_user(db, user.id, first_name="Renamed")

    assert updated.first_name == "Renamed"
    assert updated.email == "test@example.com"
    assert updated.phone_number is None


def test_update_user_clears_phone_with_explicit_none(db, make_user):
    user = make_user(phone_number="+15551234567", phone_verified=True)

    updated = UserService.update_user(db, user.id, phone_number=None, phone_verified=False)

    assert updated.phone_number is None
    assert updated.phone_verified is False


def test_update_user_ignores_none_for_required_fields(db, user):
    updated = UserService.update_user(db, user.id, email=None, first_name=None)

    assert updated.email == "test@example.com"
    assert updated.first_name == "Test"


def test_update_user_refreshes_updated_at(db, user):
    before = user.updated_at

    updated = UserService.update_user(db, user.id)

    assert updated.updated_at >= before


def test_update_user_email_conflict(db, make_user):
    make_user(email="taken@example.com")
    other = make_user(email="other@example.com")

    with pytest.raises(EmailAlreadyRegistered):
        UserService.update_user(db, other.id, email="taken@example.com")


def test_update_missing_user(db):
    assert UserService.update_user(db, 9999, first_name="X") is None


def test_update_unknown_field(db, user):
    with pytest.raises(TypeError):
        UserService.update_user(db, user.id, password="nope")


def test_storage_failure_is_wrapped(db, monkeypatch):
    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "query", broken_query)

    with pytest.raises(StorageError):
        UserService.get_user(db, 1)


def test_update_verified_without_phone_rejected(db, user):
    with pytest.raises(InvalidAccountState) as exc_info:
        UserService.update_user(db, user.id, phone_verified=True)

    assert exc_info.value.code == "InvalidAccountState"
    db.expire_all()
    assert UserService.get_user(db, user.id).phone_verified is False


def test_update_clearing_phone_resets_verified(db, make_user):
    user = make_user(phone_number="+15551234567", phone_verified=True)

    updated = UserService.update_user(db, user.id, phone_number=None)

    assert updated.phone_number is None
    assert updated.phone_verified is False


def test_update_changing_phone_resets_verified(db, make_user):
    user = make_user(phone_number="+15551234567", phone_verified=True)

    updated = UserService.update_user(db, user.id, phone_number="+15559876543")

    assert updated.phone_number == "+15559876543"
    assert updated.phone_verified is False


def test_update_same_phone_keeps_verified(db, make_user):
    user = make_user(phone_number="+15551234567", phone_verified=True)

    updated = UserService.update_user(db, user.id, phone_number="+15551234567")

    assert updated.phone_verified is True


def test_email_stored_and_found_in_normalized_form(db):
    user = UserService.create_user(db, email="Bob@Example.COM", first_name="Bob")

    assert user.email == "Bob@example.com"
    assert UserService.get_user_by_email(db, "Bob@Example.COM").id == user.id
    assert UserService.get_user_by_email(db, "not-an-email") is None

    with pytest.raises(EmailAlreadyRegistered):
        UserService.create_user(db, email="Bob@EXAMPLE.com", first_name="Other")


def test_update_email_conflict_ignores_domain_case(db, make_user):
    make_user(email="taken@example.com")
    other = make_user(email="other@example.com")

    with pytest.raises(EmailAlreadyRegistered):
        UserService.update_user(db, other.id, email="taken@EXAMPLE.COM")
