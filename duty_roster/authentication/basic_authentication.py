import argparse
import asyncio
import logging
import secrets
from typing import List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from duty_roster.authentication.basic_authentication_crud import hash_password
from duty_roster.crud import CreateData
from duty_roster.db import Session, engine
from duty_roster.dependencies import get_repository
from duty_roster.models.dc_models import UserModel, UserRole
from duty_roster.services.roster_db import RosterRepository

security = HTTPBasic()
optional_security = HTTPBasic(auto_error=False)


class BasicAuthentication:
    def __init__(self):
        pass

    async def verify(self, credentials: HTTPBasicCredentials, repository: RosterRepository) -> UserModel:
        """Check username and password against the users table

        Args:
            credentials (HTTPBasicCredentials): username and password from the request
            repository (RosterRepository): where users are stored

        Raises:
            HTTPException: The username is unknown or has no password
            HTTPException: The password is incorrect

        Returns:
            UserModel: The authenticated user
        """
        credential = await repository.read_credentials(credentials.username)
        if credential is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username",
                headers={"WWW-Authenticate": "Basic"},
            )

        hashed_password = hash_password(credentials.password, credential.salt)
        if not secrets.compare_digest(hashed_password, credential.hash_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid password",
                headers={"WWW-Authenticate": "Basic"},
            )

        user = await repository.find_user(credential.user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username",
                headers={"WWW-Authenticate": "Basic"},
            )
        return user

    async def check_user_data(
        self,
        credentials: HTTPBasicCredentials = Depends(security),
        repository: RosterRepository = Depends(get_repository),
    ) -> UserModel:
        return await self.verify(credentials, repository)

    async def check_optional_user_data(
        self,
        credentials: Optional[HTTPBasicCredentials] = Depends(optional_security),
        repository: RosterRepository = Depends(get_repository),
    ) -> Optional[UserModel]:
        """Like check_user_data, but a request without credentials yields None"""
        if credentials is None:
            return None
        return await self.verify(credentials, repository)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a user who can log in")
    parser.add_argument("--username", type=str, help="Username", required=True)
    parser.add_argument("--password", type=str, help="Password", required=True)
    parser.add_argument("--first-name", type=str, default="", help="First name")
    parser.add_argument("--last-name", type=str, default="", help="Last name")
    parser.add_argument("--phone-number", type=str, default="", help="+255XXXXXXXXX")
    parser.add_argument(
        "--roles",
        nargs="+",
        choices=[role.value for role in UserRole],
        default=[UserRole.Admin.value],
        help="Roles of the user",
    )
    return parser


async def main(username: str, password: str, first_name: str, last_name: str, phone_number: str, roles: List[str]):
    await CreateData.create_table(engine)
    repository = RosterRepository(Session)
    user = UserModel(
        username=username,
        first_name=first_name,
        last_name=last_name,
        phone_number=phone_number,
        roles={UserRole(role) for role in roles},
    )
    await repository.create_user(user, password)
    user_data = await repository.read_credentials(username)
    print(user_data.user_id, user_data.username, user_data.hash_password, user_data.salt)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = get_parser()
    args = parser.parse_args()
    asyncio.run(
        main(args.username, args.password, args.first_name, args.last_name, args.phone_number, args.roles)
    )
