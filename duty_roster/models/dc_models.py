from datetime import date, datetime
from datetime import date as dt_date
from enum import Enum
from typing import Dict, List, Optional, Set
from uuid import UUID

from pydantic import BaseModel, Field, field_validator
from uuid6 import uuid7

from duty_roster.domain.formatting import is_military_time, is_valid_phone_number
from duty_roster.domain.validation import sanitize_input, validate_age, validate_password


class UserRole(str, Enum):
    Admin = "Admin"
    Staff = "Staff"
    Missionary = "Missionary"
    Chef = "Chef"
    WorkDutyManager = "WorkDutyManager"
    DTS = "DTS"
    PraiseTeam = "PraiseTeam"
    Friend = "Friend"


class DutyCategory(str, Enum):
    meditation = "meditation"
    cooking = "cooking"
    workDuty = "workDuty"


class GenderModel(str, Enum):
    Male = "Male"
    Female = "Female"


class MealTypeModel(str, Enum):
    Breakfast = "Breakfast"
    Lunch = "Lunch"
    Dinner = "Dinner"


class KitchenDutyModel(str, Enum):
    cook = "cook"
    wash = "wash"


class MessageFrequencyModel(str, Enum):
    once = "once"
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class SmsStatusModel(str, Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class UserModel(BaseModel):
    """A community member as seen by the rule engine and the API."""
    user_id: UUID = Field(default_factory=uuid7)
    first_name: str = ""
    last_name: str = ""
    username: Optional[str] = None
    email: Optional[str] = None
    phone_number: str = ""
    gender: Optional[GenderModel] = None
    university: str = ""
    course: str = ""
    date_of_birth: Optional[date] = None
    roles: Set[UserRole] = Field(default_factory=set)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class UserCreateModel(BaseModel):
    first_name: str
    last_name: str
    phone_number: str
    gender: GenderModel
    university: str
    course: str
    date_of_birth: date
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    roles: List[UserRole] = Field(default_factory=lambda: [UserRole.Friend])

    @field_validator("first_name", "last_name", "university", "course")
    @classmethod
    def clean_text(cls, value: str) -> str:
        value = sanitize_input(value)
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("phone_number")
    @classmethod
    def check_phone_number(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_phone_number(value):
            raise ValueError("Phone number must be in format +255XXXXXXXXX")
        return value

    @field_validator("date_of_birth")
    @classmethod
    def check_age(cls, value: date) -> date:
        error = validate_age(value, date.today())
        if error:
            raise ValueError(error)
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        errors = validate_password(value)
        if errors:
            raise ValueError("; ".join(errors))
        return value

    @field_validator("roles")
    @classmethod
    def default_roles(cls, value: List[UserRole]) -> List[UserRole]:
        # A user always holds at least the Friend role.
        return sorted(set(value), key=lambda role: role.value) or [UserRole.Friend]


class RegisterModel(UserCreateModel):
    username: str
    password: str


class UserUpdateModel(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    gender: Optional[GenderModel] = None
    university: Optional[str] = None
    course: Optional[str] = None
    date_of_birth: Optional[date] = None
    roles: Optional[List[UserRole]] = None

    @field_validator("phone_number")
    @classmethod
    def check_phone_number(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_phone_number(value):
            raise ValueError("Phone number must be in format +255XXXXXXXXX")
        return value


class MeditationModel(BaseModel):
    date: dt_date
    time: str = "06:00"
    user_id: UUID
    bible_verse: str

    @field_validator("time")
    @classmethod
    def check_time(cls, value: str) -> str:
        if not is_military_time(value):
            raise ValueError("time must be HH:MM (24 hour)")
        return value


class MealModel(BaseModel):
    date: dt_date
    meal_type: MealTypeModel
    meal_name: str
    cook_id: Optional[UUID] = None
    washer_id: Optional[UUID] = None
    prep_time: str
    serve_time: str

    @field_validator("prep_time", "serve_time")
    @classmethod
    def check_time(cls, value: str) -> str:
        if not is_military_time(value):
            raise ValueError("time must be HH:MM (24 hour)")
        return value


class WorkDutyModel(BaseModel):
    task_name: str
    is_light: bool = False
    is_group: bool = False
    people_count: int = 1
    date: dt_date
    time: str
    assigned_user_ids: List[UUID] = Field(default_factory=list)

    @field_validator("time")
    @classmethod
    def check_time(cls, value: str) -> str:
        if not is_military_time(value):
            raise ValueError("time must be HH:MM (24 hour)")
        return value


class MessageScheduleModel(BaseModel):
    start_date: date
    frequency: MessageFrequencyModel = MessageFrequencyModel.once
    end_date: Optional[date] = None


class MessageModel(BaseModel):
    content: str
    recipients: List[UUID]
    schedule: Optional[MessageScheduleModel] = None


class TemplateModel(BaseModel):
    template_id: str
    name: str
    content: str
    is_active: bool = True


class TemplateSendModel(BaseModel):
    recipients: List[UUID]
    variables: Dict[str, str] = Field(default_factory=dict)


class DayRestrictionModel(BaseModel):
    exclude_days: List[int] = Field(default_factory=list)  # 0=Sunday .. 6=Saturday
    exclude_meals: List[str] = Field(default_factory=list)


class PublishTimeModel(BaseModel):
    day: int = 5
    hour: int = 17
    minute: int = 45


class KitchenRulesModel(BaseModel):
    exclude_roles_cooking: List[UserRole] = Field(
        default_factory=lambda: [UserRole.Missionary]
    )
    exclude_roles_washing: List[UserRole] = Field(
        default_factory=lambda: [UserRole.Missionary]
    )
    day_restrictions: Dict[UserRole, DayRestrictionModel] = Field(
        default_factory=lambda: {
            UserRole.DTS: DayRestrictionModel(exclude_days=[1, 2, 3, 4, 5]),
            UserRole.PraiseTeam: DayRestrictionModel(
                exclude_days=[6], exclude_meals=["lunch"]
            ),
        }
    )
    publish_time: PublishTimeModel = Field(default_factory=PublishTimeModel)

    class Config:
        from_attributes = True


class SmsMessageModel(BaseModel):
    sms_id: UUID = Field(default_factory=uuid7)
    to: str
    message: str
    status: SmsStatusModel = SmsStatusModel.pending
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None


class DashboardModel(BaseModel):
    route: str


class ImportResultModel(BaseModel):
    created: List[UserModel] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class PersonalScheduleModel(BaseModel):
    user_name: str
    week_start: date
    week_end: date
    meditation_rows: List[List[str]]
    cooking_rows: List[List[str]]
    work_duty_rows: List[List[str]]


class PublicationModel(BaseModel):
    published: bool
    publish_at: datetime
