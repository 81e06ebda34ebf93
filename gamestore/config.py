# gamestore/config.py
import os

from dotenv import load_dotenv

load_dotenv()

# asyncpg URL pointing at the compose Postgres service; alembic swaps in the sync driver
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "postgresql+asyncpg://postgres:postgres@db:5432/gamestore_db",
)
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

SECRET_KEY = os.getenv("JWT_SECRET", "supersecretkey")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ORD001, PAY001 ... the number keeps growing past the padding (ORD1000)
ID_PAD_WIDTH = int(os.getenv("ID_PAD_WIDTH", "3"))
