import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from uuid import uuid4

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from passlib.context import CryptContext

from ecoquiz.config import settings
from ecoquiz.database import get_db, utcnow
from ecoquiz.models.user import User, AuthSession

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


@dataclass(frozen=True)
class Principal:
    """Identity of the caller, resolved once per request."""
    user_id: str
    email: str
    role: str
    token: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def is_hashed(value: str) -> bool:
    # bcrypt hashes always start with "$2b$" (or the older "$2a$"/"$2y$")
    return value.startswith(("$2a$", "$2b$", "$2y$"))


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def issue_token(db: Session, user: User) -> str:
    sid = secrets.token_urlsafe(32)
    db.add(AuthSession(
        sid=sid,
        user_id=user.id,
        expire=utcnow() + timedelta(hours=settings.SESSION_TTL_HOURS),
    ))
    db.commit()
    return sid


def revoke_token(db: Session, token: str) -> None:
    db.query(AuthSession).filter(AuthSession.sid == token).delete()
    db.commit()


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_principal(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> Principal:
    auth = db.get(AuthSession, token)
    if not auth:
        raise _unauthorized()
    if auth.expire <= utcnow():
        db.delete(auth)
        db.commit()
        raise _unauthorized()
    user = auth.user
    return Principal(user_id=user.id, email=user.email, role=user.role, token=token)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return principal


def create_user(db: Session, email: str, password: str, role: str = "viewer",
                first_name: str | None = None, last_name: str | None = None) -> User:
    user = User(
        id=str(uuid4()),
        email=email.strip().lower(),
        password_hash=get_password_hash(password),
        role=role,
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def ensure_admin(db: Session, email: str, password: str) -> User:
    """
    Makes sure the configured admin account exists.
    An existing user is promoted; a password stored in plain text is rehashed.
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        logger.info("Creating admin user %s", email)
        return create_user(db, email, password, role="admin")

    changed = False
    if user.role != "admin":
        user.role = "admin"
        changed = True
    if not is_hashed(user.password_hash):
        logger.info("Rehashing plain-text password of %s", email)
        user.password_hash = get_password_hash(user.password_hash)
        changed = True
    if changed:
        db.commit()
    return user
