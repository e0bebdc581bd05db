"""
Authentication routes for account creation and login.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from junket.db.session import get_db
from junket.schemas.user import UserCreate, UserLogin, Token, UserResponse
from junket.models.user import User, UserRole
from junket.core.security import verify_password, get_password_hash, create_access_token
from junket.api.dependencies import get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: UserCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """
    Create an account.

    The very first account becomes the admin. After that only admins can
    create accounts.
    """
    # Only the first account may be created without an admin
    is_bootstrap = db.query(User).count() == 0
    if not is_bootstrap and (current_user is None or current_user.role != UserRole.ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can create accounts"
        )

    # Check if username already exists
    if db.query(User).filter(User.username == user_data.username).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists"
        )

    # Check if email already exists
    if db.query(User).filter(User.email == user_data.email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already exists"
        )

    # Create new user
    new_user = User(
        username=user_data.username,
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        role=UserRole.ADMIN if is_bootstrap else user_data.role,
        agent_id=user_data.agent_id,
        staff_id=user_data.staff_id
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info(f"Created {new_user.role.value} account '{new_user.username}'")
    return new_user


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    # Find user
    user = db.query(User).filter(User.username == credentials.username).first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    # Create access token
    access_token = create_access_token(user.username, user.id, user.role.value)
    return {"access_token": access_token, "token_type": "bearer", "role": user.role}
