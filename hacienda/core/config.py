import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./hacienda.db")
    DATABASE_ECHO: bool = _env_bool("DATABASE_ECHO")

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    CORS_ORIGINS: list = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    MINIO_ENDPOINT: str = os.getenv("MINIO_ENDPOINT", "minio:9000")
    MINIO_ACCESS_KEY: str = os.getenv("MINIO_ACCESS_KEY", "minioadmin")
    MINIO_SECRET_KEY: str = os.getenv("MINIO_SECRET_KEY", "minioadmin")
    MINIO_SECURE: bool = _env_bool("MINIO_SECURE")
    MINIO_BUCKET: str = os.getenv("MINIO_BUCKET", "hacienda-erp-files")
    MAX_FILE_SIZE: int = int(os.getenv("MAX_FILE_SIZE", str(1024 * 1024 * 1024)))
    ACCESS_URL_EXPIRE_SECONDS: int = int(os.getenv("ACCESS_URL_EXPIRE_SECONDS", "900"))

    TOAST_DURATION_SECONDS: float = float(os.getenv("TOAST_DURATION_SECONDS", "5"))

    IMPORT_PREFIX: str = os.getenv("IMPORT_PREFIX", "files/")
    IMPORT_PAUSE_EVERY: int = int(os.getenv("IMPORT_PAUSE_EVERY", "10"))
    IMPORT_PAUSE_SECONDS: float = float(os.getenv("IMPORT_PAUSE_SECONDS", "0.1"))
    IMPORT_OWNER_ID: str = os.getenv("OWNER_ID", "system-import")
    IMPORT_OWNER_EMAIL: str = os.getenv("OWNER_EMAIL", "system@hacienda-erp.com")

    TRASH_RETENTION_DAYS: int = int(os.getenv("TRASH_RETENTION_DAYS", "30"))
    TRASH_PURGE_INTERVAL_SECONDS: int = int(os.getenv("TRASH_PURGE_INTERVAL_SECONDS", "3600"))
    TRASH_PURGE_MAX_PER_LOOP: int = int(os.getenv("TRASH_PURGE_MAX_PER_LOOP", "200"))
    TRASH_PURGE_RETRY_ATTEMPTS: int = int(os.getenv("TRASH_PURGE_RETRY_ATTEMPTS", "3"))
    TRASH_PURGE_RETRY_BACKOFF_SECS: float = float(os.getenv("TRASH_PURGE_RETRY_BACKOFF_SECS", "0.5"))

    SENDGRID_API_KEY: str = os.getenv("SENDGRID_API_KEY", "")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "no-reply@hacienda-erp.com")
    EMAIL_FROM_NAME: str = os.getenv("EMAIL_FROM_NAME", "Hacienda ERP")

    FOLDER_COLORS: dict = {
        "Red": "#ef4444",
        "Orange": "#f97316",
        "Yellow": "#eab308",
        "Green": "#22c55e",
        "Blue": "#3b82f6",
        "Purple": "#a855f7",
        "Pink": "#ec4899",
    }

settings = Settings()
