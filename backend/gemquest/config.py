# gemquest/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "GemQuest API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Public base URL used to build links inside emails
    project_url: str = os.getenv("PROJECT_URL", "http://localhost:3000")

    # Session (JWT) settings
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # Single-use token lifetimes (hours)
    confirmation_token_hours: int = int(os.getenv("CONFIRMATION_TOKEN_HOURS", "24"))
    reset_token_hours: int = int(os.getenv("RESET_TOKEN_HOURS", "1"))
    invitation_token_hours: int = int(os.getenv("INVITATION_TOKEN_HOURS", "24"))

    # SMTP settings (outbound email)
    smtp_host: str | None = os.getenv("SMTP_HOST")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str | None = os.getenv("SMTP_USER")
    smtp_password: str | None = os.getenv("SMTP_PASSWORD")
    smtp_from: str | None = os.getenv("SMTP_FROM") or os.getenv("SMTP_USER")
    smtp_starttls: bool = os.getenv("SMTP_STARTTLS", "true").lower() in ("true", "1", "yes")

    # Default Super Administrator created on first startup
    admin_username: str = os.getenv("ADMIN_USERNAME", "admin")
    admin_email: str = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_password: str | None = os.getenv("ADMIN_PASSWORD")

settings = Settings()  # Instantiate configuration
