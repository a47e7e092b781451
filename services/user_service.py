from sqlalchemy.orm import Session
import logging
import uuid

from domain.models import AppUser
from domain.schemas import UserCreate
from repositories import UserRepository
from app.exceptions import NotFoundError

logger = logging.getLogger("wastenot.users")


class UserService:
    @staticmethod
    def create_user(db: Session, data: UserCreate) -> AppUser:
        user = UserRepository(db).create_user(
            email=data.email.strip().lower(), full_name=data.full_name
        )
        logger.info(f"Created user {user.user_id}")
        return user

    @staticmethod
    def get_user(db: Session, user_id: uuid.UUID) -> AppUser:
        user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User not found: {user_id}")
        return user
