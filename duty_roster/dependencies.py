"""FastAPI dependencies. Tests replace these through app.dependency_overrides."""

from datetime import datetime
from zoneinfo import ZoneInfo

from duty_roster.db import Session
from duty_roster.load_secrets import timezone_name
from duty_roster.services.roster_db import RosterRepository
from duty_roster.sms_gateway import SmsGateway

roster_timezone = ZoneInfo(timezone_name)
repository = RosterRepository(Session)
sms_gateway = SmsGateway()


def get_repository() -> RosterRepository:
    return repository


def get_sms_gateway() -> SmsGateway:
    return sms_gateway


def get_clock() -> datetime:
    """Current wall-clock time in the roster timezone"""
    return datetime.now(roster_timezone)
