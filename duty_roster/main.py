import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from redis.asyncio import Redis

from duty_roster.crud import CreateData
from duty_roster.db import engine
from duty_roster.dependencies import get_clock, repository, sms_gateway
from duty_roster.load_secrets import redis_host, redis_port
from duty_roster.reminders import ReminderService
from duty_roster.routers import kitchen, messages, schedules, users

redis = Redis(host=redis_host, port=redis_port, decode_responses=True, health_check_interval=30)

scheduler = AsyncIOScheduler()
logging.basicConfig(level=logging.INFO)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)

reminder_service = ReminderService(repository, sms_gateway, redis)


async def send_reminders() -> None:
    now = get_clock()
    try:
        await reminder_service.dispatch(now)
    except Exception as e:
        # Keep the job alive; the next run retries whatever was not claimed.
        logging.error(f"Reminder run at {now.isoformat()} failed: {e}")


@asynccontextmanager
async def lifespan(app):
    """Create tables and the built-in message templates, then start the
    reminder job. This function is called to start the server.
    """
    await CreateData.create_table(engine)
    added = await repository.seed_default_templates()
    logging.info(f"Seeded {added} default templates")

    scheduler.add_job(send_reminders, "interval", minutes=1)
    scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown()
        await sms_gateway.aclose()
        await redis.aclose()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(users.user_router)
app.include_router(schedules.schedule_router)
app.include_router(kitchen.kitchen_router)
app.include_router(messages.message_router)


# if __name__ == "__main__":
#     uvicorn.run(app, host="0.0.0.0", port=8080, reload=True)
