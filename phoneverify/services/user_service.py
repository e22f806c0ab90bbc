"""
User Service - account creation, lookup and partial updates
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..core.errors import EmailAlreadyRegistered, InvalidAccountState, StorageError
from ..models import User
from ..utils.clock import utcnow
from ..utils.email import normalize_email, try_normalize_email

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("email", "first_name", "phone_number", "phone_verified")
NULLABLE_FIELDS = {"phone_number"}


class UserService:
    """Thin handlers over the users table"""

    @staticmethod
    def create_user(db: Session, email: str, first_name: str) -> User:
        """Create a user with no phone number and phone_verified=False"""
        email = normalize_email(email)
        try:
            existing = db.query(User).filter(User.email == email).first()
            if existing:
                raise EmailAlreadyRegistered()

            now = utcnow()
            user = User(
                email=email,
                first_name=first_name,
                phone_number=None,
                phone_verified=False,
                created_at=now,
                updated_at=now,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same email
            db.rollback()
            raise EmailAlreadyRegistered()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create user: {e}", exc_info=True)
            raise StorageError(str(e)) from e

        logger.info(f"Created user: {user.id}")
        return user

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        try:
            return db.query(User).filter(User.id == user_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to get user by ID: {e}", exc_info=True)
            raise StorageError(str(e)) from e

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Look up by address, normalized the same way sign-up stores it"""
        normalized = try_normalize_email(email)
        if normalized is None:
            return None
        try:
            return db.query(User).filter(User.email == normalized).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to get user by email: {e}", exc_info=True)
            raise StorageError(str(e)) from e

    @staticmethod
    def update_user(db: Session, user_id: int, **fields) -> Optional[User]:
        """
        Apply a partial update.

        Only keys passed in `fields` are written, so phone_number=None clears
        the number while an omitted phone_number leaves it alone. Changing the
        number resets phone_verified unless the same call sets it. updated_at
        is refreshed on every call.

        Returns:
            The updated user, or None if it does not exist

        Raises:
            EmailAlreadyRegistered: If the new email belongs to another user
            InvalidAccountState: If the result would be verified without a number
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown user fields: {', '.join(sorted(unknown))}")
        # None only means "clear" for nullable columns
        fields = {k: v for k, v in fields.items() if v is not None or k in NULLABLE_FIELDS}
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])

        try:
            user = db.query(User).filter(User.id == user_id).first()
            if user is None:
                return None

            new_email = fields.get("email")
            if new_email is not None and new_email != user.email:
                taken = db.query(User).filter(User.email == new_email, User.id != user_id).first()
                if taken:
                    raise EmailAlreadyRegistered()

            phone_changed = "phone_number" in fields and fields["phone_number"] != user.phone_number
            if phone_changed and "phone_verified" not in fields:
                fields["phone_verified"] = False

            phone_number = fields.get("phone_number", user.phone_number)
            phone_verified = fields.get("phone_verified", user.phone_verified)
            if phone_verified and phone_number is None:
                raise InvalidAccountState()

            for key, value in fields.items():
                setattr(user, key, value)
            user.updated_at = utcnow()

            db.commit()
            db.refresh(user)
        except IntegrityError:
            db.rollback()
            raise EmailAlreadyRegistered()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to update user {user_id}: {e}", exc_info=True)
            raise StorageError(str(e)) from e

        logger.info(f"Updated user {user_id}: {', '.join(sorted(fields)) or 'no fields'}")
        return user
