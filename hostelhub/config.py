import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    APP_NAME: str = "HostelHub"
    # Core settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")

    # Auth & Session
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "hostelhub_session")
    SESSION_MAX_AGE_DAYS: int = int(os.getenv("SESSION_MAX_AGE_DAYS", "30"))

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./hostelhub.db")

    # Cloudinary
    CLOUDINARY_URL: str = os.getenv("CLOUDINARY_URL", "")

    # Upload constraints
    UPLOAD_IMAGE_MAX_MB: int = int(os.getenv("UPLOAD_IMAGE_MAX_MB", "5"))
    UPLOAD_IMAGE_MAX_BYTES: int = UPLOAD_IMAGE_MAX_MB * 1024 * 1024

    # Money
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "NGN").upper()

    # Agents & commissions
    AGENT_COMMISSIONS_DEFAULT_LIMIT: int = int(os.getenv("AGENT_COMMISSIONS_DEFAULT_LIMIT", "5"))
    AGENT_COMMISSIONS_MAX_LIMIT: int = int(os.getenv("AGENT_COMMISSIONS_MAX_LIMIT", "100"))
    DEFAULT_AGENT_AVATAR_URL: str = os.getenv(
        "DEFAULT_AGENT_AVATAR_URL", "https://randomuser.me/api/portraits/lego/1.jpg"
    )

    # Rooms & leases
    ROOM_OCCUPANCY_DEFAULT_LIMIT: int = int(os.getenv("ROOM_OCCUPANCY_DEFAULT_LIMIT", "10"))
    LEASE_EXPIRY_WINDOW_DAYS: int = int(os.getenv("LEASE_EXPIRY_WINDOW_DAYS", "30"))

    # Listing
    ITEMS_PER_PAGE: int = int(os.getenv("ITEMS_PER_PAGE", "10"))

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
    RATE_LIMIT_AUTH: str = os.getenv("RATE_LIMIT_AUTH", "5/minute")

settings = Settings()
