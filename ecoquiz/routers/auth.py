import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ecoquiz.database import get_db
from ecoquiz.models.user import User
from ecoquiz.schemas.user import Token, UserCreate, UserOut
from ecoquiz.utils.auth import (
    Principal,
    authenticate,
    create_user,
    get_principal,
    issue_token,
    require_admin,
    revoke_token,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/token", response_model=Token)
def login(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = authenticate(db, form.username, form.password)
    if not user:
        logger.warning("Failed login for %s", form.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=issue_token(db, user))


@router.post("/logout")
def logout(principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    revoke_token(db, principal.token)
    return {"success": True}


@router.get("/user", response_model=UserOut)
def get_profile(principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    user = db.get(User, principal.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Not Found")
    return UserOut.model_validate(user)


@router.post("/register", response_model=UserOut)
def register(payload: UserCreate, db: Session = Depends(get_db), principal: Principal = Depends(require_admin)):
    if db.query(User).filter(User.email == payload.email.lower()).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = create_user(
        db,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    logger.info("%s registered %s user %s", principal.email, user.role, user.email)
    return UserOut.model_validate(user)
