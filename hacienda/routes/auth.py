import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hacienda.core.database import get_db
from hacienda.core.security import (
    create_access_token,
    get_current_user,
    get_password_hash,
    get_session_claims,
    revoke_token,
    verify_password,
)
from hacienda.models.user import User
from hacienda.schemas.user import SessionClaims, Token, UserCreate, UserResponse

logger = logging.getLogger("hacienda-files")

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_for(user: User) -> dict:
    access_token = create_access_token(data={"sub": user.id, "email": user.email})
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == user.email))
    if result.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    db_user = User(email=user.email, hashed_password=get_password_hash(user.password))
    db.add(db_user)
    await db.commit()
    await db.refresh(db_user)
    logger.info("Registered user %s", db_user.id)
    return _token_for(db_user)

@router.post("/token", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == form_data.username))
    user = result.scalars().first()

    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    return _token_for(user)

@router.post("/logout")
async def logout(claims: dict = Depends(get_session_claims)):
    revoke_token(claims)
    return {"message": "Signed out"}

@router.get("/session", response_model=SessionClaims)
async def read_session(claims: dict = Depends(get_session_claims)):
    return SessionClaims(sub=claims["sub"], email=claims.get("email"), exp=claims["exp"])

@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user
