from datetime import datetime

from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column
from sqlalchemy.types import JSON, Boolean, Date, DateTime, Integer, String, Uuid, TEXT
from uuid6 import uuid7


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    user_id = Column(Uuid, primary_key=True, default=uuid7)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    username = Column(String, unique=True, index=True, nullable=True)
    email = Column(String, nullable=True)
    phone_number = Column(String, nullable=False)
    gender = Column(String)
    university = Column(String)
    course = Column(String)
    date_of_birth = Column(Date)
    roles = Column(JSON, default=list)  # list of UserRole values
    hash_password = Column(String, nullable=True)
    salt = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)


class MeditationSchedule(Base):
    __tablename__ = "meditation_schedule"
    meditation_id = Column(Uuid, primary_key=True, default=uuid7)
    date = Column(Date, index=True)
    time = Column(String)
    user_id = Column(Uuid, index=True)
    bible_verse = Column(String)


class Meal(Base):
    __tablename__ = "meals"
    meal_id = Column(Uuid, primary_key=True, default=uuid7)
    date = Column(Date, index=True)
    meal_type = Column(String)
    meal_name = Column(String)
    cook_id = Column(Uuid, nullable=True)
    washer_id = Column(Uuid, nullable=True)
    prep_time = Column(String)
    serve_time = Column(String)


class WorkDuty(Base):
    __tablename__ = "work_duties"
    work_duty_id = Column(Uuid, primary_key=True, default=uuid7)
    task_name = Column(String)
    is_light = Column(Boolean, default=False)
    is_group = Column(Boolean, default=False)
    people_count = Column(Integer, default=1)
    date = Column(Date, index=True)
    time = Column(String)
    assigned_user_ids = Column(JSON, default=list)  # list of user_id strings


class Message(Base):
    __tablename__ = "messages"
    message_id = Column(Uuid, primary_key=True, default=uuid7)
    content = Column(TEXT)
    recipients = Column(JSON, default=list)  # list of user_id strings
    schedule_start_date = Column(Date, nullable=True)
    schedule_frequency = Column(String, nullable=True)
    schedule_end_date = Column(Date, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    sent_by = Column(Uuid)
    last_sent_on = Column(Date, nullable=True)


class NotificationTemplate(Base):
    __tablename__ = "notification_templates"
    template_id = Column(String, primary_key=True)
    name = Column(String)
    content = Column(TEXT)
    variables = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now)


class KitchenRules(Base):
    __tablename__ = "kitchen_rules"
    rules_id = Column(Integer, primary_key=True)  # single row, id 1
    data = Column(JSON)
    updated_at = Column(DateTime, default=datetime.now)
