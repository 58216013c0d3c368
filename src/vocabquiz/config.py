import os


class Settings:
    PROJECT_NAME: str = "vocabquiz"
    DEBUG: bool = os.environ.get("DEBUG", "").lower() in ("1", "true", "yes")
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "vocabquiz.log"
    LOG_TO_DB: bool = os.environ.get("LOG_TO_DB", "").lower() in ("1", "true", "yes")
    DB_DIR: str = os.environ.get("DB_DIR", "db")
    DB_FILE: str = "vocabquiz.db"
    VOCAB_DIR: str = os.environ.get("VOCAB_DIR", "vocabulary")
    SESSION_COOKIE_NAME: str = "quiz_session_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")
    # Quiz options
    NUMBER_OF_OPTIONS: int = int(os.environ.get("NUMBER_OF_OPTIONS", "4"))
    MIN_OPTIONS: int = 2
    MAX_OPTIONS: int = 6


settings = Settings()
