from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8")

    project_name: str = "College Enroll"

    database_url: str = f"sqlite:///{BASE_DIR}/college_enroll.db"
    sql_echo: bool = False

    log_level: str = "INFO"

    # Single zone used when rendering enrollment timestamps
    timezone: str = "Asia/Kolkata"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Course code format: 2-4 uppercase letters followed by 3-4 digits (e.g. CS101)
COURSE_CODE_PATTERN = r"^[A-Z]{2,4}[0-9]{3,4}$"
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 255
CODE_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 1000
