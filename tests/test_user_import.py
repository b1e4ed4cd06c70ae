from duty_roster.models.dc_models import GenderModel, UserRole
from duty_roster.services.user_import import import_users

HEADER = "First Name,Last Name,Phone Number,Gender,University,Course,Date Of Birth,Roles"


def test_valid_rows_become_users():
    csv_text = "\n".join(
        [
            HEADER,
            "juma,hamisi,+255712000111,Male,UDSM,law,2001-03-14,Staff;Chef",
            "asha,mollel,+255712000222,Female,IFM,accounting,2002-07-01,",
        ]
    )
    users, errors = import_users(csv_text)
    assert errors == []
    assert [u.first_name for u in users] == ["JUMA", "ASHA"]
    assert users[0].course == "LAW"
    assert users[0].gender == GenderModel.Male
    assert users[0].roles == [UserRole.Chef, UserRole.Staff]
    assert users[1].roles == [UserRole.Friend]


def test_bad_rows_are_reported_without_stopping_the_import():
    csv_text = "\n".join(
        [
            HEADER,
            "juma,,+255712000111,Male,UDSM,law,2001-03-14,",
            "asha,mollel,0712000222,Female,IFM,accounting,2002-07-01,",
            "neema,kweka,+255712000333,Female,UDSM,law,2001-03-14,Bishop",
            "baraka,mrema,+255712000444,Male,DIT,civil,2000-01-01,Friend",
        ]
    )
    users, errors = import_users(csv_text)
    assert [u.first_name for u in users] == ["BARAKA"]
    assert errors[0] == "Row 2: Missing required fields"
    assert errors[1].startswith("Row 3: phone_number")
    assert errors[2].startswith("Row 4: ")
    assert len(errors) == 3


def test_quoted_values_and_blank_lines():
    csv_text = (
        "firstname,lastname,phonenumber,gender,university,course,dateofbirth\n"
        "\n"
        '"rehema","shirima","+255712000555","Female","UDSM","education, arts","1999-12-31"\n'
    )
    users, errors = import_users(csv_text)
    assert errors == []
    assert users[0].course == "EDUCATION, ARTS"


def test_quoted_field_may_span_a_blank_line():
    csv_text = (
        "firstname,lastname,phonenumber,gender,university,course,dateofbirth\n"
        '"rehema","shirima","+255712000555","Female","UDSM","education\n\narts","1999-12-31"\n'
        "juma,,+255712000111,Male,UDSM,law,2001-03-14\n"
    )
    users, errors = import_users(csv_text)
    assert [u.course for u in users] == ["EDUCATION\n\nARTS"]
    assert errors == ["Row 3: Missing required fields"]


def test_empty_input():
    assert import_users("") == ([], [])
