import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME: str = "Inventory API"
    VERSION: str = "1.0.0"
    SECRET_KEY: str = os.getenv("SECRET_KEY", "insecure-development-key")
    ALGO: str = "HS256"
    # 0 disables the exp claim, tokens then live until logout
    TOKEN_EXPIRE_MIN: int = int(os.getenv("TOKEN_EXPIRE_MIN", "0"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
    DB_URL: str = os.getenv("DB_URL", "sqlite:///./inventory.db")
    SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
    API_PREFIX: str = "/api"
    DOCS_URL: str = "/api/documentation"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LEGACY_STATUS_CODES: bool = _env_flag("LEGACY_STATUS_CODES", "true")
    ADMIN_NAME: str = os.getenv("ADMIN_NAME", "Administrator")
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")

settings = Settings()
