import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: List[str] = field(default_factory=lambda: _env_list("CORS_ORIGINS", "*"))

    # Database settings
    database_file: str = os.getenv("BOOKDASH_DB_FILE", "bookdash.db")

    # JWT settings
    jwt_secret_key: str = os.getenv("JWT_SECRET_KEY", "change-this-secret-key-in-production-please")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_issuer: Optional[str] = os.getenv("JWT_ISSUER", "bookdash-api")
    jwt_audience: Optional[str] = os.getenv("JWT_AUDIENCE", "bookdash-client")
    jwt_expiration_minutes: int = int(os.getenv("JWT_EXPIRATION_MINUTES", "60"))

    # Identity settings
    superadmin_role: str = os.getenv("SUPERADMIN_ROLE", "SuperAdmin")
    superadmin_email: str = os.getenv("SUPERADMIN_EMAIL", "superadmin@example.com")
    superadmin_password: str = os.getenv("SUPERADMIN_PASSWORD", "SuperAdmin!123")
    default_roles: List[str] = field(default_factory=lambda: _env_list("DEFAULT_ROLES", "SuperAdmin,Admin,User"))
    registration_role: str = os.getenv("REGISTRATION_ROLE", "User")
    seed_identity: bool = _env_bool("SEED_IDENTITY", "True")

    # Upload settings
    upload_dir: str = os.getenv("UPLOAD_DIR", "uploads")
    max_upload_size: int = int(os.getenv("MAX_UPLOAD_SIZE", str(5 * 1024 * 1024)))  # 5MB
    allowed_image_extensions: List[str] = field(default_factory=lambda: [".jpg", ".jpeg", ".png", ".gif"])

    # Application settings
    app_name: str = os.getenv("APP_NAME", "BookDash API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    debug: bool = _env_bool("DEBUG", "False")

    # Client settings
    api_base_url: str = os.getenv("BOOKDASH_API_URL", "http://127.0.0.1:8000")
    client_timeout: float = float(os.getenv("BOOKDASH_CLIENT_TIMEOUT", "10"))
    session_dir: str = os.getenv("BOOKDASH_SESSION_DIR", os.path.join(os.path.expanduser("~"), ".bookdash"))


settings = Settings()
