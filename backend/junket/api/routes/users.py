"""
User management routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from junket.db.session import get_db
from junket.schemas.user import UserResponse, UserUpdate
from junket.models.user import User
from junket.core.security import get_password_hash
from junket.core.utils import apply_updates
from junket.api.dependencies import get_current_user, require_admin

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user


@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List all accounts."""
    return db.query(User).order_by(User.id).all()


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update an account's email, password or active flag."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    # Hash a new password before storing
    updates = user_data.model_dump(exclude_unset=True)
    password = updates.pop("password", None)
    if password:
        user.hashed_password = get_password_hash(password)
    apply_updates(user, updates)

    db.commit()
    db.refresh(user)
    return user
