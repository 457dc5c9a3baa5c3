"""User service"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from todolist.models.user import User

logger = logging.getLogger(__name__)


class DuplicateEmailError(Exception):
    pass


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def find_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def create_user(db: Session, email: str, password_hash: str) -> User:
    if find_user_by_email(db, email) is not None:
        raise DuplicateEmailError(email)

    user = User(email=email, password_hash=password_hash)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # inscription concurrente avec le même email
        db.rollback()
        raise DuplicateEmailError(email)
    db.refresh(user)

    logger.info("Created user %s", user.id)
    return user
