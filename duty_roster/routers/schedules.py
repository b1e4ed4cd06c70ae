from datetime import date, datetime
from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from duty_roster.authentication.basic_authentication import BasicAuthentication
from duty_roster.converter import DataConverter
from duty_roster.dependencies import get_clock, get_repository
from duty_roster.domain.eligibility import (
    can_access_schedule,
    can_assign_to_kitchen_duty,
    can_create_schedule,
)
from duty_roster.domain.formatting import start_of_week
from duty_roster.domain.personal_schedule import build_personal_schedule
from duty_roster.models.dc_models import (
    DutyCategory,
    MealModel,
    MeditationModel,
    PersonalScheduleModel,
    UserModel,
    WorkDutyModel,
)
from duty_roster.models.schema_models import MealSchema, MeditationSchema, WorkDutySchema
from duty_roster.personal_schedule_pdf import render_personal_schedule_pdf
from duty_roster.routers.guards import (
    forbid_unless,
    not_found,
    require_admin,
    require_edit,
    server_error,
)
from duty_roster.services.roster_db import RosterRepository

schedule_router = APIRouter(prefix="/schedules")
basic_auth = BasicAuthentication()
data_converter = DataConverter()


def _unprocessable(detail: str) -> HTTPException:
    return HTTPException(status_code=422, detail=detail)


async def _check_known_users(user_ids: List[UUID], repository: RosterRepository) -> List[UserModel]:
    users = []
    for user_id in user_ids:
        user = await repository.find_user(user_id)
        if user is None:
            raise _unprocessable(f"Unknown user {user_id}")
        users.append(user)
    return users


async def _check_kitchen_staff(meal: MealModel, repository: RosterRepository) -> None:
    """Cook and washer must exist and be allowed in the kitchen on the meal date"""
    assigned = [user_id for user_id in (meal.cook_id, meal.washer_id) if user_id is not None]
    for user in await _check_known_users(assigned, repository):
        if not can_assign_to_kitchen_duty(user, meal.date):
            raise _unprocessable(
                f"{user.full_name} cannot be assigned to kitchen duty on {meal.date.isoformat()}"
            )


async def _personal_schedule(
    user: UserModel, week: Optional[date], now: datetime, repository: RosterRepository
) -> PersonalScheduleModel:
    week_start = start_of_week(week or now.date())
    return build_personal_schedule(
        user,
        week_start,
        await repository.list_meditations(),
        await repository.list_meals(),
        await repository.list_work_duties(),
        await repository.list_users(),
    )


class ScheduleServer:
    # Personal routes come first so "personal" is never read as a category.
    @staticmethod
    @schedule_router.get("/personal", response_model=PersonalScheduleModel)
    async def personal_schedule(
        week: Optional[date] = None,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        now: datetime = Depends(get_clock),
    ) -> PersonalScheduleModel:
        return await _personal_schedule(user_data, week, now, repository)

    @staticmethod
    @schedule_router.get("/personal/pdf")
    async def personal_schedule_pdf(
        week: Optional[date] = None,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        now: datetime = Depends(get_clock),
    ) -> Response:
        schedule = await _personal_schedule(user_data, week, now, repository)
        filename = f"schedule-{schedule.week_start.isoformat()}.pdf"
        return Response(
            content=render_personal_schedule_pdf(schedule),
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @staticmethod
    @schedule_router.get("/{category}")
    async def list_schedule(
        category: DutyCategory,
        start: Optional[date] = None,
        end: Optional[date] = None,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> List[Union[MeditationSchema, MealSchema, WorkDutySchema]]:
        forbid_unless(
            can_access_schedule(user_data, category),
            f"No access to the {category.value} schedule",
        )
        if category == DutyCategory.meditation:
            return await repository.list_meditations(start, end)
        if category == DutyCategory.cooking:
            return await repository.list_meals(start, end)
        return await repository.list_work_duties(start, end)

    # ---------------------------------------------------------------
    # Meditation
    # ---------------------------------------------------------------
    @staticmethod
    @schedule_router.post("/meditation", response_model=MeditationSchema, status_code=status.HTTP_201_CREATED)
    async def create_meditation(
        meditation: MeditationModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> MeditationSchema:
        forbid_unless(can_create_schedule(user_data, DutyCategory.meditation))
        await _check_known_users([meditation.user_id], repository)
        try:
            return await repository.create_meditation(
                data_converter.convert_meditationmodel_to_schema(meditation)
            )
        except RuntimeError as e:
            raise server_error(e)

    @staticmethod
    @schedule_router.put("/meditation/{meditation_id}", response_model=MeditationSchema)
    async def update_meditation(
        meditation_id: UUID,
        meditation: MeditationModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> MeditationSchema:
        require_admin(user_data)
        await _check_known_users([meditation.user_id], repository)
        try:
            return await repository.update_meditation(
                data_converter.convert_meditationmodel_to_schema(meditation, meditation_id)
            )
        except LookupError as e:
            raise not_found(e)

    @staticmethod
    @schedule_router.delete("/meditation/{meditation_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_meditation(
        meditation_id: UUID,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> None:
        require_admin(user_data)
        try:
            await repository.delete_meditation(meditation_id)
        except LookupError as e:
            raise not_found(e)

    # ---------------------------------------------------------------
    # Meals
    # ---------------------------------------------------------------
    @staticmethod
    @schedule_router.post("/meals", response_model=MealSchema, status_code=status.HTTP_201_CREATED)
    async def create_meal(
        meal: MealModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> MealSchema:
        forbid_unless(can_create_schedule(user_data, DutyCategory.cooking))
        await _check_kitchen_staff(meal, repository)
        try:
            return await repository.create_meal(data_converter.convert_mealmodel_to_schema(meal))
        except RuntimeError as e:
            raise server_error(e)

    @staticmethod
    @schedule_router.put("/meals/{meal_id}", response_model=MealSchema)
    async def update_meal(
        meal_id: UUID,
        meal: MealModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        now: datetime = Depends(get_clock),
    ) -> MealSchema:
        require_edit(user_data, DutyCategory.cooking, now)
        await _check_kitchen_staff(meal, repository)
        try:
            return await repository.update_meal(data_converter.convert_mealmodel_to_schema(meal, meal_id))
        except LookupError as e:
            raise not_found(e)

    @staticmethod
    @schedule_router.delete("/meals/{meal_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_meal(
        meal_id: UUID,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        now: datetime = Depends(get_clock),
    ) -> None:
        require_edit(user_data, DutyCategory.cooking, now)
        try:
            await repository.delete_meal(meal_id)
        except LookupError as e:
            raise not_found(e)

    # ---------------------------------------------------------------
    # Work duties
    # ---------------------------------------------------------------
    @staticmethod
    @schedule_router.post("/work-duties", response_model=WorkDutySchema, status_code=status.HTTP_201_CREATED)
    async def create_work_duty(
        work_duty: WorkDutyModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> WorkDutySchema:
        forbid_unless(can_create_schedule(user_data, DutyCategory.workDuty))
        await _check_known_users(work_duty.assigned_user_ids, repository)
        try:
            return await repository.create_work_duty(
                data_converter.convert_workdutymodel_to_schema(work_duty)
            )
        except RuntimeError as e:
            raise server_error(e)

    @staticmethod
    @schedule_router.put("/work-duties/{work_duty_id}", response_model=WorkDutySchema)
    async def update_work_duty(
        work_duty_id: UUID,
        work_duty: WorkDutyModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        now: datetime = Depends(get_clock),
    ) -> WorkDutySchema:
        require_edit(user_data, DutyCategory.workDuty, now)
        await _check_known_users(work_duty.assigned_user_ids, repository)
        try:
            return await repository.update_work_duty(
                data_converter.convert_workdutymodel_to_schema(work_duty, work_duty_id)
            )
        except LookupError as e:
            raise not_found(e)

    @staticmethod
    @schedule_router.delete("/work-duties/{work_duty_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_work_duty(
        work_duty_id: UUID,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        now: datetime = Depends(get_clock),
    ) -> None:
        require_edit(user_data, DutyCategory.workDuty, now)
        try:
            await repository.delete_work_duty(work_duty_id)
        except LookupError as e:
            raise not_found(e)
