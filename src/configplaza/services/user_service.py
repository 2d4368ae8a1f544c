"""Profile and settings for the signed-in user."""

import enum
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from configplaza.db.models import User
from configplaza.errors import NotFoundError


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: uuid.UUID, data: dict) -> User:
        """Apply only the fields the client sent."""
        user = await self.get(user_id)
        for field, value in data.items():
            if value is None:
                continue
            if isinstance(value, enum.Enum):
                value = value.value
            setattr(user, field, value)
        await self.db.commit()
        await self.db.refresh(user)
        return user
