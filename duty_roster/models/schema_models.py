from datetime import date, datetime
from datetime import date as dt_date
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel

from duty_roster.models.dc_models import MealTypeModel, MessageFrequencyModel


class UserCredentialSchema(BaseModel):
    user_id: UUID
    username: str
    hash_password: str
    salt: str

    class Config:
        from_attributes = True


class MeditationSchema(BaseModel):
    meditation_id: UUID
    date: dt_date
    time: str
    user_id: UUID
    bible_verse: str

    class Config:
        from_attributes = True


class MealSchema(BaseModel):
    meal_id: UUID
    date: dt_date
    meal_type: MealTypeModel
    meal_name: str
    cook_id: Optional[UUID] = None
    washer_id: Optional[UUID] = None
    prep_time: str
    serve_time: str

    class Config:
        from_attributes = True


class WorkDutySchema(BaseModel):
    work_duty_id: UUID
    task_name: str
    is_light: bool
    is_group: bool
    people_count: int
    date: dt_date
    time: str
    assigned_user_ids: List[UUID]

    class Config:
        from_attributes = True


class MessageSchema(BaseModel):
    message_id: UUID
    content: str
    recipients: List[UUID]
    schedule_start_date: Optional[date] = None
    schedule_frequency: Optional[MessageFrequencyModel] = None
    schedule_end_date: Optional[date] = None
    sent_at: Optional[datetime] = None
    sent_by: UUID
    last_sent_on: Optional[date] = None

    class Config:
        from_attributes = True


class NotificationTemplateSchema(BaseModel):
    template_id: str
    name: str
    content: str
    variables: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class KitchenRulesSchema(BaseModel):
    rules_id: int
    data: Dict[str, Any]
    updated_at: datetime

    class Config:
        from_attributes = True
