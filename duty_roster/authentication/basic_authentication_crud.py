import hashlib
import logging
import secrets
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from duty_roster.crud import CreateData
from duty_roster.load_secrets import pepper_data
from duty_roster.models.dc_models import UserModel
from duty_roster.models.schema_models import UserCredentialSchema
from duty_roster.models.schemas import User


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((password + salt + pepper_data).encode()).hexdigest()


class CreateAuthentication:
    @staticmethod
    async def create_user_data(user: UserModel, password: Optional[str], session: AsyncSession) -> bool:
        """Create a user, with login credentials if a password is given

        Args:
            user (UserModel): Profile and roles
            password (Optional[str]): Plain password, hashed with a fresh salt
        """
        if password is None:
            return await CreateData.create_user_data(user, session)
        salt = secrets.token_hex(8)
        return await CreateData.create_user_data(
            user, session, hash_password=hash_password(password, salt), salt=salt
        )


class ReadAuthentication:
    @staticmethod
    async def read_user_credentials(username: str, session: AsyncSession) -> Optional[UserCredentialSchema]:
        """Read user data to get salt and password hash

        Args:
            username (str): username of the user

        Returns:
            Optional[UserCredentialSchema]: username, password hash and salt
        """
        async with session:
            try:
                stmt = select(User).where(User.username == username)
                result = await session.execute(stmt)
                result = result.scalars().first()
                if result is None or result.hash_password is None:
                    logging.info(f"No credentials for {username}")
                    return None
                return UserCredentialSchema.model_validate(result)
            except Exception as e:
                logging.error(f"Error reading user credentials: {e}")
                return None
