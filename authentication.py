import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from config import settings
from database import obtain_db_session
from errors import Forbidden, Unauthenticated
import models

logger = logging.getLogger(__name__)

crypto_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)
bearer_scheme = HTTPBearer(auto_error=False)

ADMIN_ROLE = "admin"
USER_ROLE = "user"


class Access(str, Enum):
    PUBLIC = "public"
    AUTHENTICATED = "any-authenticated"
    ADMIN = "admin-only"


@dataclass
class Identity:
    """The caller of a request: the user and the token they presented."""
    user: models.User
    token: models.Token

    @property
    def is_admin(self) -> bool:
        return self.user.role == ADMIN_ROLE


def get_password_hash(password):
    return crypto_ctx.hash(password)

def verify_password(plain_password, hashed_password):
    return crypto_ctx.verify(plain_password, hashed_password)

def generate_access_token(db: Session, user: models.User, name: str = "auth_token",
                          expires_delta: Optional[timedelta] = None) -> str:
    """Sign a new bearer token for `user` and record it so it can be revoked.

    The token row is added to the session but not committed.
    """
    jti = uuid.uuid4().hex
    to_encode = {"sub": str(user.id), "jti": jti}
    if expires_delta is None and settings.TOKEN_EXPIRE_MIN > 0:
        expires_delta = timedelta(minutes=settings.TOKEN_EXPIRE_MIN)
    if expires_delta is not None:
        to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    db.add(models.Token(user_id=user.id, jti=jti, name=name))
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGO)

def resolve_token(db: Session, token: str) -> Identity:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGO])
    except JWTError:
        raise Unauthenticated()
    user_id = payload.get("sub")
    jti = payload.get("jti")
    if user_id is None or jti is None:
        raise Unauthenticated()

    record = db.query(models.Token).filter(models.Token.jti == jti).first()
    if record is None or str(record.user_id) != user_id:
        # revoked by logout, or never issued by us
        raise Unauthenticated()
    return Identity(user=record.user, token=record)

def authorize(identity: Optional[Identity], access: Access) -> Optional[Identity]:
    """Check that `identity` may perform an operation of class `access`."""
    if access is Access.PUBLIC:
        return identity
    if identity is None:
        raise Unauthenticated()
    if access is Access.ADMIN and not identity.is_admin:
        logger.warning("User %s (role=%s) denied admin-only operation", identity.user.id, identity.user.role)
        raise Forbidden()
    return identity


# --- FastAPI dependencies ---

def optional_identity(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
                      db: Session = Depends(obtain_db_session)) -> Optional[Identity]:
    """Identity of the caller, or None for anonymous or unusable credentials."""
    if credentials is None:
        return None
    try:
        return resolve_token(db, credentials.credentials)
    except Unauthenticated:
        return None

def current_identity(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
                     db: Session = Depends(obtain_db_session)) -> Identity:
    if credentials is None:
        raise Unauthenticated()
    return resolve_token(db, credentials.credentials)
