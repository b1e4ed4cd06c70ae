import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status

from duty_roster.authentication.basic_authentication import BasicAuthentication
from duty_roster.converter import DataConverter
from duty_roster.dependencies import get_repository
from duty_roster.domain.eligibility import get_dashboard_for_user
from duty_roster.domain.formatting import UNIVERSITY_OPTIONS
from duty_roster.models.dc_models import (
    DashboardModel,
    ImportResultModel,
    RegisterModel,
    UserCreateModel,
    UserModel,
    UserRole,
    UserUpdateModel,
)
from duty_roster.routers.guards import not_found, require_admin, server_error
from duty_roster.services.roster_db import RosterRepository
from duty_roster.services.user_import import import_users

user_router = APIRouter()
basic_auth = BasicAuthentication()
data_converter = DataConverter()


async def _ensure_username_free(username: Optional[str], repository: RosterRepository) -> None:
    if username and await repository.get_user_by_username(username) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Username {username} is already taken",
        )


class UserServer:
    @staticmethod
    @user_router.post("/register", response_model=UserModel, status_code=status.HTTP_201_CREATED)
    async def register(
        registration: RegisterModel,
        repository: RosterRepository = Depends(get_repository),
    ) -> UserModel:
        """Self registration. New members always start as Friend."""
        await _ensure_username_free(registration.username, repository)
        user = data_converter.convert_usercreatemodel_to_usermodel(registration)
        user.roles = {UserRole.Friend}
        try:
            return await repository.create_user(user, registration.password)
        except RuntimeError as e:
            raise server_error(e)

    @staticmethod
    @user_router.get("/universities", response_model=List[str])
    async def universities() -> List[str]:
        """Choices for the registration form"""
        return UNIVERSITY_OPTIONS

    @staticmethod
    @user_router.get("/dashboard", response_model=DashboardModel)
    async def dashboard(
        user_data: Optional[UserModel] = Depends(basic_auth.check_optional_user_data),
    ) -> DashboardModel:
        return DashboardModel(route=get_dashboard_for_user(user_data))

    @staticmethod
    @user_router.get("/me", response_model=UserModel)
    async def me(user_data: UserModel = Depends(basic_auth.check_user_data)) -> UserModel:
        return user_data

    @staticmethod
    @user_router.get("/users", response_model=List[UserModel])
    async def list_users(
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> List[UserModel]:
        require_admin(user_data)
        return await repository.list_users()

    @staticmethod
    @user_router.post("/users", response_model=UserModel, status_code=status.HTTP_201_CREATED)
    async def create_user(
        new_user: UserCreateModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> UserModel:
        require_admin(user_data)
        await _ensure_username_free(new_user.username, repository)
        user = data_converter.convert_usercreatemodel_to_usermodel(new_user)
        try:
            return await repository.create_user(user, new_user.password)
        except RuntimeError as e:
            raise server_error(e)

    @staticmethod
    @user_router.put("/users/{user_id}", response_model=UserModel)
    async def update_user(
        user_id: UUID,
        update: UserUpdateModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> UserModel:
        require_admin(user_data)
        try:
            current = await repository.get_user(user_id)
            if update.username and update.username != current.username:
                await _ensure_username_free(update.username, repository)
            updated = data_converter.apply_userupdatemodel(current, update)
            return await repository.update_user(updated)
        except LookupError as e:
            raise not_found(e)

    @staticmethod
    @user_router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_user(
        user_id: UUID,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> None:
        require_admin(user_data)
        try:
            await repository.delete_user(user_id)
        except LookupError as e:
            raise not_found(e)

    @staticmethod
    @user_router.post("/users/import", response_model=ImportResultModel)
    async def import_user_list(
        request: Request,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> ImportResultModel:
        """Bulk create users from a CSV request body"""
        require_admin(user_data)
        body = await request.body()
        try:
            csv_text = body.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise HTTPException(status_code=422, detail="CSV must be UTF-8")
        parsed, errors = import_users(csv_text)

        result = ImportResultModel(errors=errors)
        for new_user in parsed:
            user = data_converter.convert_usercreatemodel_to_usermodel(new_user)
            try:
                result.created.append(await repository.create_user(user))
            except RuntimeError as e:
                logging.error(f"Import of {user.full_name} failed: {e}")
                result.errors.append(f"{user.full_name}: {e}")
        return result
