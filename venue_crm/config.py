import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./venue_crm.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# JWT signing falls back to SECRET_KEY so a single secret is enough in development
JWT_SECRET = os.getenv("JWT_SECRET") or SECRET_KEY
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))

# Frontend base URL for OAuth redirects
CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")
# Public base URL of this API, used to build OAuth callback URLs
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000")

# Google OAuth Configuration
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")

# Microsoft OAuth Configuration ("common" accepts both work and personal accounts)
MICROSOFT_CLIENT_ID = os.getenv("MICROSOFT_CLIENT_ID")
MICROSOFT_CLIENT_SECRET = os.getenv("MICROSOFT_CLIENT_SECRET")
MICROSOFT_TENANT = os.getenv("MICROSOFT_TENANT", "common")

# CORS
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", f"{CLIENT_URL},http://localhost:5173").split(",")

# Rate limiting
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "100"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
AUTH_RATE_LIMIT_MAX = int(os.getenv("AUTH_RATE_LIMIT_MAX", "10"))
# Peers whose X-Forwarded-For header is believed (comma-separated hosts)
TRUSTED_PROXIES = frozenset(host.strip() for host in os.getenv("TRUSTED_PROXIES", "").split(",") if host.strip())

# Request size limits (bytes)
MAX_BODY_SIZE = int(os.getenv("MAX_BODY_SIZE", str(10 * 1024 * 1024)))
MAX_DOCUMENT_SIZE = int(os.getenv("MAX_DOCUMENT_SIZE", str(10 * 1024 * 1024)))

# Cloudflare R2 / S3-compatible storage for signed booking documents
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "venue-crm")
# Overrides the R2 endpoint, e.g. for MinIO or AWS S3
STORAGE_ENDPOINT_URL = os.getenv("STORAGE_ENDPOINT_URL")

# Business rules
CLAIM_PAYMENT_TERMS_DAYS = int(os.getenv("CLAIM_PAYMENT_TERMS_DAYS", "30"))
OPTION_EXPIRY_WARNING_DAYS = int(os.getenv("OPTION_EXPIRY_WARNING_DAYS", "7"))

API_VERSION = "1.0"
