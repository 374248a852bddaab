import os
import sys
from dotenv import load_dotenv

load_dotenv()

# Application version
VERSION = "1.0.0"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./insekta.db")
# Production deployments must set DEBUG=false
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Origin of the SPA; used for CORS and for links inside e-mails
CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:5173")
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [o.strip() for o in _cors_env.split(",") if o.strip()] if _cors_env else [CLIENT_URL]

# JWT session
_DEFAULT_SECRET_KEY = "change-this-secret-key-in-production-32chars"
SECRET_KEY = os.getenv("SECRET_KEY", _DEFAULT_SECRET_KEY)

# Refuse to boot a production instance with the placeholder key
if not DEBUG and SECRET_KEY == _DEFAULT_SECRET_KEY:
    print(
        "[SECURITY ERROR] DEBUG=false but SECRET_KEY is still the default placeholder. "
        "Set SECRET_KEY to a long random string.",
        file=sys.stderr,
    )
    sys.exit(1)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "30"))
COOKIE_NAME = os.getenv("COOKIE_NAME", "jwt")

# Public static files; uploads are served from PUBLIC_DIR/uploads at /uploads
PUBLIC_DIR = os.getenv(
    "PUBLIC_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "public"),
)
UPLOAD_DIR = os.path.join(PUBLIC_DIR, "uploads")
MAX_IMAGE_SIZE_MB = int(os.getenv("MAX_IMAGE_SIZE_MB", "2"))
MAX_TEAM_PHOTO_SIZE_MB = int(os.getenv("MAX_TEAM_PHOTO_SIZE_MB", "5"))

# Google Sheets fetch
SHEET_FETCH_TIMEOUT = float(os.getenv("SHEET_FETCH_TIMEOUT", "30"))

# Mail transport; sending is skipped when EMAIL_USER is empty
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
EMAIL_USER = os.getenv("EMAIL_USER", "")
EMAIL_PASS = os.getenv("EMAIL_PASS", "")
FROM_NAME = os.getenv("FROM_NAME", "Insekta Support")

DEFAULT_ADMIN_EMAIL = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@insekta.local")

# Rate limits (attempts per window in seconds)
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "5"))
LOGIN_RATE_WINDOW = int(os.getenv("LOGIN_RATE_WINDOW", "300"))
API_RATE_LIMIT = int(os.getenv("API_RATE_LIMIT", "100"))
API_RATE_WINDOW = int(os.getenv("API_RATE_WINDOW", "60"))
