"""Repository for User database operations."""

import logging
from typing import List, Optional, Tuple
from sqlalchemy import desc
from sqlalchemy.orm import Session

from dms.models.user import User
from dms.database.models import UserDB, enum_to_value, permissions_to_json

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        user_db = self.db.query(UserDB).filter(UserDB.email == email.strip().lower()).first()
        return user_db.to_pydantic() if user_db else None

    def list(self, offset: int = 0, limit: Optional[int] = None) -> Tuple[List[User], int]:
        """List users (newest first) with the total count before paging."""
        query = self.db.query(UserDB)
        total = query.count()
        query = query.order_by(desc(UserDB.created_at)).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [row.to_pydantic() for row in query.all()], total

    def create(self, user: User) -> User:
        """Create a new user."""
        try:
            user_db = UserDB.from_pydantic(user)
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user.id}: {user.email}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {user.id}: {type(e).__name__}: {str(e)}")
            raise

    def update(self, user: User) -> User:
        """Persist every mutable field of an existing user (email is immutable)."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user.id).first()
        if not user_db:
            raise ValueError(f"User {user.id} not found")

        user_db.display_name = user.display_name
        user_db.role = enum_to_value(user.role)
        user_db.module_permissions = permissions_to_json(user.module_permissions)
        user_db.is_active = user.is_active
        user_db.employee_id = user.employee_id
        user_db.plant = user.plant
        user_db.department = user.department
        user_db.designation = user.designation
        user_db.contact_no = user.contact_no
        user_db.updated_at = user.updated_at

        try:
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Updated user {user.id}: {user.email}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user.id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, user_id: str) -> bool:
        """Delete a user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        if not user_db:
            return False

        try:
            self.db.delete(user_db)
            self.db.commit()
            logger.debug(f"Deleted user {user_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {type(e).__name__}: {str(e)}")
            raise
