import logging
import random
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from duty_roster.authentication.basic_authentication import BasicAuthentication
from duty_roster.dependencies import get_clock, get_repository
from duty_roster.domain.eligibility import can_access_schedule, has_role
from duty_roster.domain.formatting import end_of_week, start_of_week
from duty_roster.domain.kitchen_rules import (
    auto_assign_kitchen_duties,
    can_user_cook,
    can_user_wash_dishes,
    is_schedule_published,
    publication_time,
)
from duty_roster.models.dc_models import (
    DutyCategory,
    KitchenDutyModel,
    KitchenRulesModel,
    MealTypeModel,
    PublicationModel,
    UserModel,
    UserRole,
)
from duty_roster.models.schema_models import MealSchema
from duty_roster.routers.guards import (
    forbid_unless,
    not_found,
    require_admin,
    require_edit_window,
    server_error,
)
from duty_roster.services.roster_db import RosterRepository

kitchen_router = APIRouter(prefix="/kitchen")
basic_auth = BasicAuthentication()


def get_random() -> random.Random:
    return random.Random()


class KitchenServer:
    @staticmethod
    @kitchen_router.get("/rules", response_model=KitchenRulesModel)
    async def read_rules(
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> KitchenRulesModel:
        require_admin(user_data)
        return await repository.get_kitchen_rules()

    @staticmethod
    @kitchen_router.put("/rules", response_model=KitchenRulesModel)
    async def update_rules(
        rules: KitchenRulesModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> KitchenRulesModel:
        require_admin(user_data)
        try:
            return await repository.save_kitchen_rules(rules)
        except RuntimeError as e:
            raise server_error(e)

    @staticmethod
    @kitchen_router.post("/auto-assign", response_model=List[MealSchema])
    async def auto_assign(
        week: Optional[date] = None,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        now: datetime = Depends(get_clock),
        rng: random.Random = Depends(get_random),
    ) -> List[MealSchema]:
        """Fill cook and washer of every meal in the week with eligible members"""
        forbid_unless(
            has_role(user_data, UserRole.Admin) or has_role(user_data, UserRole.Chef),
            "Admin or Chef role required",
        )
        require_edit_window(now)

        week_start = start_of_week(week or now.date())
        meals = await repository.list_meals(week_start, end_of_week(week_start))
        assigned = auto_assign_kitchen_duties(
            meals,
            await repository.list_users(),
            await repository.get_kitchen_rules(),
            rng,
        )
        changed = [after for before, after in zip(meals, assigned) if after is not before]
        try:
            await repository.assign_meals(changed)
        except LookupError as e:
            raise not_found(e)
        except RuntimeError as e:
            raise server_error(e)
        logging.info(f"Auto-assigned kitchen duties for {len(assigned)} meals of week {week_start}")
        return assigned

    @staticmethod
    @kitchen_router.get("/eligible", response_model=List[UserModel])
    async def eligible_users(
        date: date,
        duty: KitchenDutyModel,
        meal_type: Optional[MealTypeModel] = None,
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
    ) -> List[UserModel]:
        forbid_unless(can_access_schedule(user_data, DutyCategory.cooking))
        rules = await repository.get_kitchen_rules()
        users = await repository.list_users()
        if duty == KitchenDutyModel.cook:
            return [u for u in users if can_user_cook(u, date, rules)]
        if meal_type is None:
            raise HTTPException(status_code=422, detail="meal_type is required for washing")
        return [u for u in users if can_user_wash_dishes(u, date, meal_type, rules)]

    @staticmethod
    @kitchen_router.get("/published", response_model=PublicationModel)
    async def published(
        user_data: UserModel = Depends(basic_auth.check_user_data),
        repository: RosterRepository = Depends(get_repository),
        now: datetime = Depends(get_clock),
    ) -> PublicationModel:
        rules = await repository.get_kitchen_rules()
        return PublicationModel(
            published=is_schedule_published(now, rules),
            publish_at=publication_time(now, rules),
        )
