"""
HTTP API: authentication, role checks, the edit window and the happy paths
of every router. Storage is a per-test aiosqlite file; the clock and the SMS
gateway are replaced through dependency_overrides.
"""
from datetime import datetime

import pytest

from conftest import PASSWORD, TZ, auth
from duty_roster.models.dc_models import UserRole

pytestmark = pytest.mark.anyio

FRIDAY_EVENING = datetime(2025, 1, 24, 19, 0, tzinfo=TZ)
SATURDAY_MORNING = datetime(2025, 1, 25, 9, 0, tzinfo=TZ)

REGISTRATION = {
    "first_name": "Asha",
    "last_name": "Mollel",
    "phone_number": "+255712345678",
    "gender": "Female",
    "university": "UDSM",
    "course": "Law",
    "date_of_birth": "2001-04-09",
    "username": "asha",
    "password": PASSWORD,
    "roles": ["Admin"],
}


def meal_body(cook_id=None, washer_id=None, day="2025-01-22", meal_type="Dinner"):
    return {
        "date": day,
        "meal_type": meal_type,
        "meal_name": "Pilau",
        "cook_id": str(cook_id) if cook_id else None,
        "washer_id": str(washer_id) if washer_id else None,
        "prep_time": "17:00",
        "serve_time": "19:00",
    }


# ==== auth & self service ====


async def test_register_always_creates_a_friend(client):
    r = await client.post("/register", json=REGISTRATION)
    assert r.status_code == 201
    assert r.json()["roles"] == ["Friend"]

    again = await client.post("/register", json=REGISTRATION)
    assert again.status_code == 409

    me = await client.get("/me", auth=("asha", PASSWORD))
    assert me.status_code == 200
    assert me.json()["username"] == "asha"


async def test_university_choices_are_public(client):
    r = await client.get("/universities")
    assert r.status_code == 200
    assert "UDSM" in r.json()


async def test_register_rejects_weak_password(client):
    r = await client.post("/register", json={**REGISTRATION, "password": "weak"})
    assert r.status_code == 422


async def test_bad_credentials_are_401(client, make_user):
    await make_user(UserRole.Admin, username="boss")
    r = await client.get("/me", auth=("boss", "wrong"))
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Basic"
    assert (await client.get("/me", auth=("ghost", PASSWORD))).status_code == 401
    assert (await client.get("/me")).status_code == 401


async def test_dashboard_route(client, make_user):
    admin = await make_user(UserRole.Chef, UserRole.Admin)
    friend = await make_user(UserRole.Friend)
    assert (await client.get("/dashboard")).json() == {"route": "/login"}
    assert (await client.get("/dashboard", auth=auth(friend))).json() == {"route": "/login"}
    assert (await client.get("/dashboard", auth=auth(admin))).json() == {"route": "/admin"}


# ==== users ====


async def test_user_management_is_admin_only(client, make_user):
    chef = await make_user(UserRole.Chef)
    assert (await client.get("/users", auth=auth(chef))).status_code == 403
    body = {**REGISTRATION, "username": "neema", "roles": ["Staff", "Chef"]}
    assert (await client.post("/users", json=body, auth=auth(chef))).status_code == 403


async def test_admin_creates_updates_and_deletes_users(client, make_user):
    admin = await make_user(UserRole.Admin)
    body = {**REGISTRATION, "username": "neema", "roles": ["Staff", "Chef"]}
    created = await client.post("/users", json=body, auth=auth(admin))
    assert created.status_code == 201
    user_id = created.json()["user_id"]
    assert sorted(created.json()["roles"]) == ["Chef", "Staff"]

    updated = await client.put(f"/users/{user_id}", json={"roles": ["DTS"]}, auth=auth(admin))
    assert updated.status_code == 200
    assert updated.json()["roles"] == ["DTS"]
    assert updated.json()["first_name"] == "Asha"

    assert len((await client.get("/users", auth=auth(admin))).json()) == 2
    assert (await client.delete(f"/users/{user_id}", auth=auth(admin))).status_code == 204
    assert (await client.delete(f"/users/{user_id}", auth=auth(admin))).status_code == 404


async def test_csv_import(client, make_user):
    admin = await make_user(UserRole.Admin)
    csv_text = (
        "firstname,lastname,phonenumber,gender,university,course,dateofbirth\n"
        "juma,hamisi,+255712000111,Male,UDSM,law,2001-03-14\n"
        "asha,,+255712000222,Female,IFM,accounting,2002-07-01\n"
    )
    r = await client.post(
        "/users/import", content=csv_text, headers={"Content-Type": "text/csv"}, auth=auth(admin)
    )
    assert r.status_code == 200
    result = r.json()
    assert [u["first_name"] for u in result["created"]] == ["JUMA"]
    assert result["errors"] == ["Row 3: Missing required fields"]


async def test_csv_import_rejects_non_utf8(client, make_user):
    admin = await make_user(UserRole.Admin)
    body = b"firstname,lastname,phonenumber\n\xff\xfe,x,+255712000111\n"
    r = await client.post("/users/import", content=body, headers={"Content-Type": "text/csv"}, auth=auth(admin))
    assert r.status_code == 422
    assert r.json()["detail"] == "CSV must be UTF-8"
    assert len((await client.get("/users", auth=auth(admin))).json()) == 1


# ==== schedules ====


@pytest.mark.parametrize(
    "role, category, status",
    [
        (UserRole.Friend, "cooking", 403),
        (UserRole.Chef, "cooking", 200),
        (UserRole.Chef, "meditation", 403),
        (UserRole.DTS, "meditation", 403),
        (UserRole.DTS, "workDuty", 200),
        (UserRole.Staff, "meditation", 200),
    ],
)
async def test_schedule_access(client, make_user, role, category, status):
    user = await make_user(role)
    assert (await client.get(f"/schedules/{category}", auth=auth(user))).status_code == status


async def test_unknown_category_is_rejected(client, make_user):
    admin = await make_user(UserRole.Admin)
    assert (await client.get("/schedules/laundry", auth=auth(admin))).status_code == 422


async def test_chef_creates_meals_for_eligible_members_only(client, make_user):
    chef = await make_user(UserRole.Chef)
    missionary = await make_user(UserRole.Missionary)
    friend = await make_user(UserRole.Friend)

    rejected = await client.post("/schedules/meals", json=meal_body(missionary.user_id), auth=auth(chef))
    assert rejected.status_code == 422

    created = await client.post("/schedules/meals", json=meal_body(friend.user_id), auth=auth(chef))
    assert created.status_code == 201
    assert created.json()["cook_id"] == str(friend.user_id)

    meals = await client.get("/schedules/cooking", params={"start": "2025-01-20", "end": "2025-01-26"}, auth=auth(chef))
    assert [m["meal_name"] for m in meals.json()] == ["Pilau"]
    empty = await client.get("/schedules/cooking", params={"start": "2025-01-27"}, auth=auth(chef))
    assert empty.json() == []


async def test_edits_are_admin_only_and_respect_the_window(client, make_user, clock):
    admin = await make_user(UserRole.Admin)
    chef = await make_user(UserRole.Chef)
    friend = await make_user(UserRole.Friend)
    created = await client.post("/schedules/meals", json=meal_body(friend.user_id), auth=auth(chef))
    meal_id = created.json()["meal_id"]

    by_chef = await client.put(f"/schedules/meals/{meal_id}", json=meal_body(), auth=auth(chef))
    assert by_chef.status_code == 403
    assert by_chef.json()["detail"] == "Admin role required"

    by_admin = await client.put(f"/schedules/meals/{meal_id}", json=meal_body(), auth=auth(admin))
    assert by_admin.status_code == 200
    assert by_admin.json()["cook_id"] is None

    clock.now = FRIDAY_EVENING
    closed = await client.delete(f"/schedules/meals/{meal_id}", auth=auth(admin))
    assert closed.status_code == 403
    assert closed.json()["detail"] == "Schedule edits are closed until Monday"

    clock.now = datetime(2025, 1, 27, 9, 0, tzinfo=TZ)
    assert (await client.delete(f"/schedules/meals/{meal_id}", auth=auth(admin))).status_code == 204
    assert (await client.delete(f"/schedules/meals/{meal_id}", auth=auth(admin))).status_code == 404


async def test_work_duties(client, make_user, clock):
    manager = await make_user(UserRole.WorkDutyManager)
    admin = await make_user(UserRole.Admin)
    worker = await make_user(UserRole.Friend)
    body = {
        "task_name": "Sweep chapel",
        "is_light": True,
        "date": "2025-01-23",
        "time": "16:00",
        "assigned_user_ids": [str(worker.user_id)],
    }
    created = await client.post("/schedules/work-duties", json=body, auth=auth(manager))
    assert created.status_code == 201
    duty_id = created.json()["work_duty_id"]

    unknown = {**body, "assigned_user_ids": ["01890a5d-ac96-774b-bcce-b302099a8057"]}
    assert (await client.post("/schedules/work-duties", json=unknown, auth=auth(manager))).status_code == 422

    assert (await client.put(f"/schedules/work-duties/{duty_id}", json=body, auth=auth(manager))).status_code == 403
    clock.now = SATURDAY_MORNING
    closed = await client.put(f"/schedules/work-duties/{duty_id}", json=body, auth=auth(admin))
    assert closed.json()["detail"] == "Schedule edits are closed until Monday"


async def test_meditation_and_personal_schedule(client, make_user):
    admin = await make_user(UserRole.Admin)
    chef = await make_user(UserRole.Chef)
    leader = await make_user(UserRole.Missionary)
    body = {"date": "2025-01-22", "user_id": str(leader.user_id), "bible_verse": "John 3:16"}

    assert (await client.post("/schedules/meditation", json=body, auth=auth(chef))).status_code == 403
    created = await client.post("/schedules/meditation", json=body, auth=auth(admin))
    assert created.status_code == 201
    assert created.json()["time"] == "06:00"

    moved = await client.put(
        f"/schedules/meditation/{created.json()['meditation_id']}",
        json={**body, "bible_verse": "Psalm 23:1"},
        auth=auth(admin),
    )
    assert moved.json()["bible_verse"] == "Psalm 23:1"

    personal = await client.get("/schedules/personal", params={"week": "2025-01-23"}, auth=auth(leader))
    assert personal.status_code == 200
    schedule = personal.json()
    assert schedule["week_start"] == "2025-01-20"
    assert schedule["meditation_rows"][2] == ["Wednesday", "Psalm 23:1", "you"]

    pdf = await client.get("/schedules/personal/pdf", auth=auth(leader))
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


# ==== kitchen ====


async def test_kitchen_rules_are_admin_only(client, make_user):
    admin = await make_user(UserRole.Admin)
    chef = await make_user(UserRole.Chef)
    assert (await client.get("/kitchen/rules", auth=auth(chef))).status_code == 403

    rules = (await client.get("/kitchen/rules", auth=auth(admin))).json()
    assert rules["exclude_roles_cooking"] == ["Missionary"]
    rules["exclude_roles_washing"] = ["Missionary", "Staff"]
    saved = await client.put("/kitchen/rules", json=rules, auth=auth(admin))
    assert saved.status_code == 200
    assert (await client.get("/kitchen/rules", auth=auth(admin))).json()["exclude_roles_washing"] == [
        "Missionary",
        "Staff",
    ]


async def test_auto_assign_fills_the_week(client, make_user, clock):
    chef = await make_user(UserRole.Chef)
    await make_user(UserRole.Friend)
    await make_user(UserRole.Friend)
    await make_user(UserRole.Missionary)
    await client.post("/schedules/meals", json=meal_body(), auth=auth(chef))
    await client.post("/schedules/meals", json=meal_body(day="2025-01-26", meal_type="Lunch"), auth=auth(chef))

    r = await client.post("/kitchen/auto-assign", params={"week": "2025-01-22"}, auth=auth(chef))
    assert r.status_code == 200
    weekday, sunday_lunch = r.json()
    assert weekday["cook_id"] and weekday["washer_id"]
    assert weekday["cook_id"] != weekday["washer_id"]
    assert sunday_lunch["cook_id"] is None

    stored = (await client.get("/schedules/cooking", auth=auth(chef))).json()
    assert stored[0]["cook_id"] == weekday["cook_id"]

    clock.now = SATURDAY_MORNING
    closed = await client.post("/kitchen/auto-assign", auth=auth(chef))
    assert closed.status_code == 403


async def test_eligible_members_and_publication(client, make_user):
    chef = await make_user(UserRole.Chef)
    dts = await make_user(UserRole.DTS)
    friend = await make_user(UserRole.Friend)

    cooks = await client.get("/kitchen/eligible", params={"date": "2025-01-22", "duty": "cook"}, auth=auth(chef))
    assert str(dts.user_id) in {u["user_id"] for u in cooks.json()}

    washers = await client.get(
        "/kitchen/eligible",
        params={"date": "2025-01-22", "duty": "wash", "meal_type": "Lunch"},
        auth=auth(chef),
    )
    ids = {u["user_id"] for u in washers.json()}
    assert str(friend.user_id) in ids
    assert str(dts.user_id) not in ids

    missing = await client.get("/kitchen/eligible", params={"date": "2025-01-22", "duty": "wash"}, auth=auth(chef))
    assert missing.status_code == 422

    published = (await client.get("/kitchen/published", auth=auth(friend))).json()
    assert published["published"] is False
    assert published["publish_at"].startswith("2025-01-24T17:45:00")


# ==== messages ====


async def test_messages_send_now_or_later(client, make_user, sms_requests):
    admin = await make_user(UserRole.Admin)
    friend = await make_user(UserRole.Friend)

    now = await client.post(
        "/messages", json={"content": "Supper moved to 20:00", "recipients": [str(friend.user_id)]}, auth=auth(admin)
    )
    assert now.status_code == 201
    assert now.json()["sent_at"] is not None
    assert len(sms_requests) == 1

    later = await client.post(
        "/messages",
        json={
            "content": "Weekly prayer",
            "recipients": [str(friend.user_id)],
            "schedule": {"start_date": "2025-01-27", "frequency": "weekly"},
        },
        auth=auth(admin),
    )
    assert later.status_code == 201
    assert later.json()["sent_at"] is None
    assert later.json()["schedule_frequency"] == "weekly"
    assert len(sms_requests) == 1

    assert len((await client.get("/messages", auth=auth(admin))).json()) == 2
    assert (await client.get("/messages", auth=auth(friend))).status_code == 403


async def test_template_lifecycle(client, make_user, sms_requests):
    admin = await make_user(UserRole.Admin)
    friend = await make_user(UserRole.Friend, first_name="Neema")
    template = {"template_id": "choir", "name": "Choir", "content": "Hi {{firstName}}, choir at {{time}}"}

    created = await client.post("/messages/templates", json=template, auth=auth(admin))
    assert created.status_code == 201
    assert created.json()["variables"] == ["firstName", "time"]
    assert (await client.post("/messages/templates", json=template, auth=auth(admin))).status_code == 409

    sent = await client.post(
        "/messages/templates/choir/send",
        json={"recipients": [str(friend.user_id)], "variables": {"time": "18:00"}},
        auth=auth(admin),
    )
    assert sent.status_code == 200
    assert sent.json()[0]["message"] == "Hi Neema, choir at 18:00"
    assert sent.json()[0]["status"] == "sent"

    paused = await client.put(
        "/messages/templates/choir", json={**template, "is_active": False}, auth=auth(admin)
    )
    assert paused.json()["is_active"] is False
    inactive = await client.post(
        "/messages/templates/choir/send", json={"recipients": [str(friend.user_id)]}, auth=auth(admin)
    )
    assert inactive.status_code == 409

    assert (await client.delete("/messages/templates/choir", auth=auth(admin))).status_code == 204
    gone = await client.post("/messages/templates/choir/send", json={"recipients": []}, auth=auth(admin))
    assert gone.status_code == 404
    assert len(sms_requests) == 1
