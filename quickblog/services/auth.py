import logging
from typing import Optional

from sqlmodel import Session, select, func

from quickblog.core.config import settings
from quickblog.core.errors import AuthenticationError
from quickblog.core.security import create_access_token, get_password_hash, verify_password
from quickblog.models.user import AdminRole, User

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, session: Session):
        self.session = session

    def get_user_by_email(self, email: str) -> Optional[User]:
        # Case-insensitive exact match; no LIKE so % and _ are literal
        return self.session.exec(select(User).where(func.lower(User.email) == email.lower())).first()

    def create_access_token_for(self, user: User) -> str:
        return create_access_token(data={"sub": str(user.id), "role": user.role.value})

    def bootstrap_super_admin(self, email: str, password: str) -> Optional[User]:
        """Provision the first account from ADMIN_EMAIL / ADMIN_PASSWORD.

        Only possible while no user exists at all.
        """
        if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
            return None
        if self.session.exec(select(func.count(User.id))).one() > 0:
            return None
        if email.lower() != settings.ADMIN_EMAIL.lower() or password != settings.ADMIN_PASSWORD:
            return None

        user = User(
            name="Super Admin",
            email=email.lower(),
            password_hash=get_password_hash(password),
            role=AdminRole.SUPER_ADMIN,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.warning("No users found - provisioned super admin %s", user.email)
        return user

    def login(self, email: str, password: str) -> tuple[str, bool]:
        """Return ``(token, bootstrapped)`` or raise AuthenticationError."""
        email = email.strip()
        user = self.bootstrap_super_admin(email, password)
        if user:
            return self.create_access_token_for(user), True

        user = self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid Credentials")
        return self.create_access_token_for(user), False
