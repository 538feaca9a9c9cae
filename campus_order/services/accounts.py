"""
Account flows: sign-up, sign-in, profile and password reset
"""

from datetime import datetime, timedelta
from typing import Optional, Tuple
from sqlmodel import Session, select
import uuid
import structlog

from campus_order.core.auth import (
    generate_reset_token, hash_password, hash_reset_token, verify_password,
)
from campus_order.core.errors import Conflict, InvalidPayload, NotFound, Unauthenticated
from campus_order.models.delivery_location import DeliveryBuilding, DeliveryLocation
from campus_order.models.user import PasswordResetToken, User
from campus_order.services.email import mask_email

logger = structlog.get_logger(__name__)

FORGOT_PASSWORD_MESSAGE = "If this email exists in our system, check your email for the reset link."
INVALID_RESET_TOKEN = "Invalid or expired reset token"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    def __init__(self, session: Session):
        self.session = session

    def get_user(self, user_id: uuid.UUID) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.email == normalize_email(email))).first()

    def sign_up(self, email: str, password: str, name: str) -> User:
        if self.find_by_email(email) is not None:
            raise Conflict("An account with this email already exists")

        user = User(email=normalize_email(email), name=name, password_hash=hash_password(password))
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"Registered user {user.id} ({mask_email(user.email)})")
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed sign-in for {mask_email(email)}")
            raise Unauthenticated("Invalid email or password")
        return user

    def update_phone(self, user_id: uuid.UUID, phone_number: Optional[str]) -> User:
        user = self.get_user(user_id)
        user.phone_number = phone_number
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def update_delivery_preference(
        self,
        user_id: uuid.UUID,
        location_id: Optional[uuid.UUID],
        building_id: Optional[uuid.UUID],
    ) -> User:
        """Save the default delivery spot; a building alone implies its location"""
        if location_id is not None and self.session.get(DeliveryLocation, location_id) is None:
            raise NotFound("Location not found")

        if building_id is not None:
            building = self.session.get(DeliveryBuilding, building_id)
            if building is None:
                raise NotFound("Building not found")
            if location_id is not None and building.location_id != location_id:
                raise InvalidPayload("Building does not belong to the selected condo")
            location_id = building.location_id

        user = self.get_user(user_id)
        user.default_delivery_location_id = location_id
        user.default_delivery_building_id = building_id
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"User {user_id} saved delivery preference {location_id}/{building_id}")
        return user

    def create_password_reset(self, email: str, expire_minutes: int) -> Optional[Tuple[User, str]]:
        """Return (user, raw token) when a reset can be sent, otherwise None.

        Callers must respond identically in both cases.
        """
        user = self.find_by_email(email)
        if user is None or not user.password_hash:
            logger.info(f"Password reset requested for unknown or password-less account {mask_email(email)}")
            return None

        for stale in self.session.exec(
            select(PasswordResetToken).where(PasswordResetToken.user_id == user.id)
        ).all():
            self.session.delete(stale)

        token = generate_reset_token()
        self.session.add(PasswordResetToken(
            user_id=user.id,
            token_hash=hash_reset_token(token),
            expires_at=datetime.utcnow() + timedelta(minutes=expire_minutes),
        ))
        self.session.commit()
        logger.info(f"Issued password reset token for user {user.id}")
        return user, token

    def reset_password(self, token: str, new_password: str) -> User:
        record = self.session.exec(
            select(PasswordResetToken).where(PasswordResetToken.token_hash == hash_reset_token(token))
        ).first()
        if record is None or record.is_expired():
            raise InvalidPayload(INVALID_RESET_TOKEN)

        user = self.get_user(record.user_id)
        user.password_hash = hash_password(new_password)
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        self.session.delete(record)
        self.session.commit()
        logger.info(f"Password reset for user {user.id}")
        return user
