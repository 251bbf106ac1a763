from __future__ import annotations
import os
from pydantic import BaseModel

# ============================================================
# CONFIG: CHALLENGE
# ============================================================

DEFAULT_ROSTER = [
    "Del", "Giem", "Glaiz", "Jeun", "Joy", "Kokoy", "Leanne", "Lui",
    "Ramon", "Robert", "Sarah", "Sheila", "Shin", "Yohan", "Zephanny", "Sam",
]

# Google Sheets scopes for the "sheets" storage backend (read/write)
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


def _split_roster(raw: str | None) -> list[str]:
    if not raw:
        return list(DEFAULT_ROSTER)
    names = [n.strip() for n in raw.split(",")]
    return [n for n in names if n]


class Settings(BaseModel):
    roster: list[str] = _split_roster(os.getenv("STEPS_ROSTER"))
    target_steps: int = int(os.getenv("STEPS_TARGET", "10000"))
    penalty_amount: int = int(os.getenv("STEPS_PENALTY", "50"))
    currency: str = os.getenv("STEPS_CURRENCY", "₱")

    storage: str = os.getenv("STEPS_STORAGE", "json")  # json|sheets|memory
    data_path: str = os.getenv("STEPS_DATA_PATH", "steps_data.json")
    sheet_name: str = os.getenv("STEPS_SHEET_NAME", "StepsChallengeDB")
    worksheet: str = os.getenv("STEPS_WORKSHEET", "submissions")

    # Daily reminder, local wall clock
    reminder_hour: int = int(os.getenv("STEPS_REMINDER_HOUR", "20"))
    reminder_minute: int = int(os.getenv("STEPS_REMINDER_MINUTE", "0"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
