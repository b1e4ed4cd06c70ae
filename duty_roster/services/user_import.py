import csv
import io
import logging
from typing import List, Tuple

from pydantic import ValidationError

from duty_roster.models.dc_models import UserCreateModel, UserRole

REQUIRED_COLUMNS = ("firstname", "lastname", "phonenumber")


def _normalize_header(header: str) -> str:
    return "".join(header.split()).lower()


def _describe(error: ValidationError) -> str:
    details = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"])
        details.append(f"{field}: {item['msg']}")
    return "; ".join(details)


def import_users(csv_text: str) -> Tuple[List[UserCreateModel], List[str]]:
    """Parse a member list exported from a spreadsheet.

    Args:
        csv_text (str): CSV with a header row. Headers are matched ignoring
            case and whitespace. An optional roles column holds role names
            separated by ";".

    Returns:
        Tuple[List[UserCreateModel], List[str]]: Valid users and one
            "Row N: ..." message per rejected row (N counts the header as row 1,
            blank records are skipped)
    """
    records = [
        values
        for values in csv.reader(io.StringIO(csv_text, newline=""))
        if any(value.strip() for value in values)
    ]
    if not records:
        return [], []

    headers = [_normalize_header(h) for h in records[0]]

    users: List[UserCreateModel] = []
    errors: List[str] = []
    for row_number, values in enumerate(records[1:], start=2):
        record = {header: value.strip() for header, value in zip(headers, values)}

        if not all(record.get(column) for column in REQUIRED_COLUMNS):
            errors.append(f"Row {row_number}: Missing required fields")
            continue

        roles = [r.strip() for r in record.get("roles", "").split(";") if r.strip()]
        try:
            user = UserCreateModel(
                first_name=record["firstname"].upper(),
                last_name=record["lastname"].upper(),
                phone_number=record["phonenumber"],
                gender=record.get("gender", ""),
                university=record.get("university", ""),
                course=record.get("course", "").upper(),
                date_of_birth=record.get("dateofbirth", ""),
                username=record.get("username") or None,
                email=record.get("email") or None,
                roles=[UserRole(r) for r in roles] or [UserRole.Friend],
            )
        except ValidationError as e:
            errors.append(f"Row {row_number}: {_describe(e)}")
            continue
        except ValueError as e:
            errors.append(f"Row {row_number}: {e}")
            continue
        users.append(user)

    logging.info(f"Parsed {len(users)} users from CSV, {len(errors)} rows rejected")
    return users, errors
