import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

SUPPORTED_DATABASE_TYPES = ("sqlite", "mysql", "mongodb", "memory")
DATABASE_TYPE = os.getenv("DATABASE_TYPE", "sqlite").strip().lower()

# Overrides the URL built for the sqlite and mysql backends when set.
DATABASE_URL = os.getenv("DATABASE_URL", "")
SQLITE_PATH = os.getenv("SQLITE_PATH", "./task_management_system.db")
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

MYSQL_HOST = os.getenv("MYSQL_HOST", "localhost")
MYSQL_PORT = int(os.getenv("MYSQL_PORT", "3306"))
MYSQL_USER = os.getenv("MYSQL_USER", "")
MYSQL_PASSWORD = os.getenv("MYSQL_PASSWORD", "")
MYSQL_DATABASE = os.getenv("MYSQL_DATABASE", "task_management_system")
MYSQL_POOL_SIZE = int(os.getenv("MYSQL_POOL_SIZE", "10"))

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", "task_management_system")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), default=["http://localhost:3000"])

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))


def validate_runtime_config() -> None:
    if DATABASE_TYPE not in SUPPORTED_DATABASE_TYPES:
        raise RuntimeError(
            f'Invalid DATABASE_TYPE "{DATABASE_TYPE}". '
            f'Set it to one of: {", ".join(SUPPORTED_DATABASE_TYPES)}.'
        )
    if DATABASE_TYPE == "mysql" and not (DATABASE_URL or MYSQL_USER):
        raise RuntimeError("MYSQL_USER or DATABASE_URL must be set when DATABASE_TYPE is mysql.")
