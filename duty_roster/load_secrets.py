import os
from dotenv import load_dotenv

load_dotenv()

db_backend = os.getenv("DB_BACKEND", "sqlite")
user = os.getenv("DB_USER")
password = os.getenv("DB_PASSWORD")
host = os.getenv("DB_HOST", "localhost")
port = os.getenv("DB_PORT", "5432")
db_name = os.getenv("DB_NAME", "duty_roster")
sqlite_path = os.getenv("SQLITE_PATH")
pepper_data = os.getenv("PEPPER_DATA", "")

timezone_name = os.getenv("ROSTER_TIMEZONE", "Africa/Dar_es_Salaam")

redis_host = os.getenv("REDIS_HOST", "redis")
redis_port = int(os.getenv("REDIS_PORT", "6379"))

sms_provider = os.getenv("SMS_PROVIDER", "beem")
beem_api_key = os.getenv("BEEM_API_KEY", "")
beem_secret_key = os.getenv("BEEM_SECRET_KEY", "")
beem_source_addr = os.getenv("BEEM_SOURCE_ADDR", "YWAM DAR")
at_username = os.getenv("AT_USERNAME", "")
at_api_key = os.getenv("AT_API_KEY", "")
at_from = os.getenv("AT_FROM", "YWAM DAR")

if __name__ == "__main__":
    print(db_backend, user, host, port, db_name, sqlite_path, timezone_name, sms_provider)
