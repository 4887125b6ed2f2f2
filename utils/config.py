import os
from dotenv import load_dotenv

load_dotenv(override=True)


class ScheduleConfig:
    """Scheduling settings"""

    # Fixed per-session duration for each priority tier (in minutes)
    HIGH_PRIORITY_MINUTES = 90
    MEDIUM_PRIORITY_MINUTES = 60
    LOW_PRIORITY_MINUTES = 45

    # Per-day fill attempts = FILL_ATTEMPTS_PER_TOPIC * number of topics
    FILL_ATTEMPTS_PER_TOPIC = 3

    # Request limits
    MIN_STUDY_HOURS_PER_DAY = 1
    MAX_STUDY_HOURS_PER_DAY = 12
    DEFAULT_STUDY_HOURS_PER_DAY = 3
    MAX_TOPICS = 50
    MAX_TOPIC_LENGTH = 200
    MAX_TITLE_LENGTH = 100
    DEFAULT_TITLE = "Study Schedule"


class AIConfig:
    """Chat model settings"""

    MODEL_NAME = os.getenv("AI_MODEL", "openai:gpt-4.1")
    TEMPERATURE = float(os.getenv("AI_TEMPERATURE", "0.7"))
    MAX_RETRIES = int(os.getenv("AI_MAX_RETRIES", "3"))


class LogConfig:
    """Logging settings"""

    LOG_FILE = os.getenv("LOG_FILE", "logs/app.log")
    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
    BACKUP_COUNT = 5
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
