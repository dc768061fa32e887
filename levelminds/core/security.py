"""
Request authentication helpers
Tokens are minted by the auth service; this module only verifies them
"""
import secrets
import string

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from levelminds.core.config import settings
from levelminds.core.database import get_db
from levelminds.core.errors import Forbidden, Unauthorized
from levelminds.models.user import User

auth_scheme = HTTPBearer(auto_error=False)

_PASSWORD_ALPHABET = string.ascii_letters + string.digits


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        return False


def generate_temp_password(length: int = None) -> str:
    """Random alphanumeric password handed out with admin-created accounts"""
    length = length or settings.TEMP_PASSWORD_LENGTH
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
    db: Session = Depends(get_db)
) -> User:
    if credentials is None:
        raise Unauthorized("Not authorized, no token provided.")
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Not authorized, token expired.")
    except jwt.InvalidTokenError:
        raise Unauthorized("Not authorized, token failed.")

    user = db.query(User).filter(User.id == payload.get("sub")).first()
    if not user:
        raise Unauthorized("Not authorized, user not found.")
    return user


def require_role(*roles: str):
    """Dependency factory that admits only users holding one of `roles`"""
    def _checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise Forbidden(f"Forbidden: requires role {' or '.join(roles)}.")
        return user
    return _checker
