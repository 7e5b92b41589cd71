"""
Credential store: persistence for user records.

Only creation and lookup are exposed; users are never updated or deleted here.
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.core.exceptions import DuplicateEmailError
from projecthub.models.user import User, DEFAULT_ROLE


class UserStore:
    """Creates and looks up users in the ``users`` table"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        role: Optional[str] = None
    ) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateEmailError: a user with this email already exists. The
                pre-check covers the common case; the unique index on
                ``users.email`` covers concurrent registrations.
        """
        if await self.find_by_email(email) is not None:
            raise DuplicateEmailError(email)

        user = User(
            username=username,
            email=email,
            hashed_password=password_hash,
            role=role or DEFAULT_ROLE,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateEmailError(email) from e

        await self.db.refresh(user)
        return user
