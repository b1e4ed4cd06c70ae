from datetime import date, datetime

import pytest
from uuid6 import uuid7

from duty_roster.domain.templates import DEFAULT_TEMPLATES, MEDITATION_REMINDER
from duty_roster.models.dc_models import (
    DayRestrictionModel,
    KitchenRulesModel,
    MealTypeModel,
    MessageFrequencyModel,
    TemplateModel,
    UserRole,
)
from duty_roster.models.schema_models import MealSchema, MeditationSchema, MessageSchema, WorkDutySchema

pytestmark = pytest.mark.anyio


async def test_user_round_trip_keeps_roles_as_a_set(repository, make_user):
    created = await make_user(UserRole.Chef, UserRole.Admin, username="rehema")
    loaded = await repository.get_user(created.user_id)
    assert loaded.roles == {UserRole.Admin, UserRole.Chef}
    assert loaded.username == "rehema"
    assert (await repository.get_user_by_username("rehema")).user_id == created.user_id


async def test_credentials_are_salted_hashes(repository, make_user):
    await make_user(UserRole.Admin, username="boss")
    credential = await repository.read_credentials("boss")
    assert credential.salt
    assert credential.hash_password != "Passw0rd!"
    assert len(credential.hash_password) == 64


async def test_users_without_password_have_no_credentials(repository, make_user):
    user = await make_user(UserRole.Friend, login=False)
    assert user.username is None
    assert await repository.read_credentials("member1") is None


async def test_missing_rows_raise_lookup_error(repository):
    with pytest.raises(LookupError):
        await repository.get_user(uuid7())
    with pytest.raises(LookupError):
        await repository.delete_meal(uuid7())
    with pytest.raises(LookupError):
        await repository.get_template("nope")


async def test_update_and_delete_user(repository, make_user):
    user = await make_user(UserRole.Friend)
    user.roles = {UserRole.DTS}
    user.course = "MEDICINE"
    await repository.update_user(user)
    loaded = await repository.get_user(user.user_id)
    assert loaded.roles == {UserRole.DTS}
    assert loaded.course == "MEDICINE"

    await repository.delete_user(user.user_id)
    assert await repository.find_user(user.user_id) is None


async def test_meditation_and_meal_by_id(repository, make_user):
    leader = await make_user(UserRole.Missionary)
    meditation = await repository.create_meditation(
        MeditationSchema(
            meditation_id=uuid7(), date=date(2025, 1, 22), time="06:00", user_id=leader.user_id, bible_verse="John 1:1"
        )
    )
    meditation.bible_verse = "John 1:2"
    await repository.update_meditation(meditation)
    assert (await repository.get_meditation(meditation.meditation_id)).bible_verse == "John 1:2"

    meal = await repository.create_meal(
        MealSchema(
            meal_id=uuid7(),
            date=date(2025, 1, 22),
            meal_type=MealTypeModel.Lunch,
            meal_name="Ugali",
            prep_time="11:00",
            serve_time="13:00",
        )
    )
    loaded = await repository.get_meal(meal.meal_id)
    assert loaded.meal_type == MealTypeModel.Lunch
    assert loaded.cook_id is None

    await repository.delete_meal(meal.meal_id)
    with pytest.raises(LookupError):
        await repository.get_meal(meal.meal_id)
    with pytest.raises(LookupError):
        await repository.update_meal(loaded)


async def test_assign_meals_is_all_or_nothing(repository, make_user):
    cook = await make_user(UserRole.Friend)
    washer = await make_user(UserRole.Friend)
    meals = []
    for meal_type in (MealTypeModel.Lunch, MealTypeModel.Dinner):
        meals.append(
            await repository.create_meal(
                MealSchema(
                    meal_id=uuid7(),
                    date=date(2025, 1, 22),
                    meal_type=meal_type,
                    meal_name="Wali",
                    prep_time="11:00",
                    serve_time="13:00",
                )
            )
        )
    assigned = [m.model_copy(update={"cook_id": cook.user_id, "washer_id": washer.user_id}) for m in meals]

    await repository.delete_meal(meals[1].meal_id)
    with pytest.raises(LookupError):
        await repository.assign_meals(assigned)
    assert (await repository.get_meal(meals[0].meal_id)).cook_id is None

    await repository.assign_meals(assigned[:1])
    saved = await repository.get_meal(meals[0].meal_id)
    assert (saved.cook_id, saved.washer_id) == (cook.user_id, washer.user_id)


async def test_meals_are_filtered_by_date_range(repository, make_user):
    cook = await make_user(UserRole.Chef)
    for day in (date(2025, 1, 19), date(2025, 1, 22), date(2025, 1, 27)):
        await repository.create_meal(
            MealSchema(
                meal_id=uuid7(),
                date=day,
                meal_type=MealTypeModel.Dinner,
                meal_name="Wali",
                cook_id=cook.user_id,
                prep_time="17:00",
                serve_time="19:00",
            )
        )
    week = await repository.list_meals(date(2025, 1, 20), date(2025, 1, 26))
    assert [m.date for m in week] == [date(2025, 1, 22)]
    assert week[0].meal_type == MealTypeModel.Dinner
    assert len(await repository.list_meals()) == 3


async def test_work_duty_keeps_assigned_users(repository, make_user):
    a = await make_user(UserRole.Friend)
    b = await make_user(UserRole.Friend)
    duty = WorkDutySchema(
        work_duty_id=uuid7(),
        task_name="Sweep chapel",
        is_light=True,
        is_group=True,
        people_count=2,
        date=date(2025, 1, 22),
        time="16:00",
        assigned_user_ids=[a.user_id, b.user_id],
    )
    await repository.create_work_duty(duty)
    loaded = await repository.get_work_duty(duty.work_duty_id)
    assert loaded.assigned_user_ids == [a.user_id, b.user_id]

    loaded.assigned_user_ids = [b.user_id]
    await repository.update_work_duty(loaded)
    assert (await repository.get_work_duty(duty.work_duty_id)).assigned_user_ids == [b.user_id]


async def test_scheduled_messages_and_sent_marker(repository, make_user):
    admin = await make_user(UserRole.Admin)
    scheduled = MessageSchema(
        message_id=uuid7(),
        content="Prayer night",
        recipients=[admin.user_id],
        schedule_start_date=date(2025, 1, 20),
        schedule_frequency=MessageFrequencyModel.weekly,
        sent_by=admin.user_id,
    )
    plain = MessageSchema(message_id=uuid7(), content="Hello", recipients=[], sent_by=admin.user_id)
    await repository.create_message(scheduled)
    await repository.create_message(plain)

    [only] = await repository.list_scheduled_messages()
    assert only.message_id == scheduled.message_id
    assert only.schedule_frequency == MessageFrequencyModel.weekly

    await repository.mark_message_sent(scheduled.message_id, datetime(2025, 1, 20, 7, 0))
    [only] = await repository.list_scheduled_messages()
    assert only.last_sent_on == date(2025, 1, 20)
    assert len(await repository.list_messages()) == 2


async def test_seed_default_templates_is_idempotent(repository):
    assert await repository.seed_default_templates() == len(DEFAULT_TEMPLATES)
    assert await repository.seed_default_templates() == 0
    template = await repository.get_template(MEDITATION_REMINDER)
    assert template.variables == ["firstName", "bibleVerse"]


async def test_update_template_recomputes_variables(repository):
    await repository.create_template(TemplateModel(template_id="notice", name="Notice", content="Hi {{firstName}}"))
    updated = await repository.update_template(
        TemplateModel(template_id="notice", name="Notice", content="{{firstName}} at {{place}}", is_active=False)
    )
    assert updated.variables == ["firstName", "place"]
    loaded = await repository.get_template("notice")
    assert loaded.is_active is False
    assert loaded.content == "{{firstName}} at {{place}}"


async def test_kitchen_rules_default_then_saved(repository):
    assert await repository.get_kitchen_rules() == KitchenRulesModel()
    rules = KitchenRulesModel(
        exclude_roles_cooking=[UserRole.Missionary, UserRole.Staff],
        day_restrictions={UserRole.PraiseTeam: DayRestrictionModel(exclude_days=[0, 6])},
    )
    await repository.save_kitchen_rules(rules)
    assert await repository.get_kitchen_rules() == rules
    rules.publish_time.hour = 12
    await repository.save_kitchen_rules(rules)
    assert (await repository.get_kitchen_rules()).publish_time.hour == 12
