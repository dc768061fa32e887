"""
User Administration Service
Admins browse accounts and reset passwords on a user's behalf
"""
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from levelminds.core.config import settings
from levelminds.core.errors import InvalidInput, NotFound
from levelminds.core.security import hash_password
from levelminds.models.user import User, UserRole
from levelminds.schemas.common import page_info


class UserAdminService:

    def list_users(
        self,
        db: Session,
        role: Optional[str] = None,
        limit: int = settings.DEFAULT_PAGE_SIZE,
        offset: int = 0
    ) -> dict:
        query = db.query(User)
        if role:
            if role not in {r.value for r in UserRole}:
                raise InvalidInput('Invalid role specified. Must be "student", "school", or "admin".')
            query = query.filter(User.role == role)

        total = query.count()
        users = query.order_by(User.createdAt.desc(), User.id).offset(offset).limit(limit).all()
        return {
            "users": [
                {
                    "id": user.id,
                    "name": user.name,
                    "email": user.email,
                    "role": user.role,
                    "onboarding_complete": user.isOnboardingComplete,
                }
                for user in users
            ],
            **page_info(total, limit, offset),
        }

    def reset_password(self, db: Session, user_id: str, new_password: str) -> User:
        """Replace the user's password hash; the caller tells the user the new password"""
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found.")

        user.password = hash_password(new_password)
        db.commit()
        db.refresh(user)

        logger.info(f"Password for {user.role} {user.email} reset by an admin")
        return user


# Singleton instance
user_admin = UserAdminService()
