"""
Database initialization script.

Creates all tables and, when ADMIN_USERNAME / ADMIN_PASSWORD are set in the
environment, a first admin account.
"""
import logging
import os
from junket.db.session import SessionLocal, init_db
from junket.core.security import get_password_hash
from junket.models import User, UserRole

logger = logging.getLogger(__name__)


def create_initial_admin(db, username: str, password: str, email: str) -> User:
    """Create the admin account unless the username is already taken."""
    user = db.query(User).filter(User.username == username).first()
    if user:
        logger.info(f"Admin user '{username}' already exists, skipping")
        return user

    user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash(password),
        role=UserRole.ADMIN
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created admin user '{username}'")
    return user


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Initializing database...")
    init_db()

    username = os.environ.get("ADMIN_USERNAME")
    password = os.environ.get("ADMIN_PASSWORD")
    if username and password:
        db = SessionLocal()
        try:
            create_initial_admin(
                db, username, password,
                os.environ.get("ADMIN_EMAIL", f"{username}@example.com")
            )
        finally:
            db.close()
    print("Database initialized successfully!")
