# services/config.py
from __future__ import annotations
import os

from dotenv import load_dotenv

load_dotenv()  # loads values from a local .env file if present

# ------------------------------------------------------------------------------
# Helper: get env var with fallback
# ------------------------------------------------------------------------------
def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return v if v is not None and v != "" else default

# ------------------------------------------------------------------------------
# Database (Tortoise URL)
# ------------------------------------------------------------------------------
DATABASE_URL: str = _env("DATABASE_URL", "sqlite://./db.sqlite3")

# ------------------------------------------------------------------------------
# Auth
# ------------------------------------------------------------------------------
JWT_SECRET: str = _env("JWT_SECRET", "change-me")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_SECONDS: int = int(_env("ACCESS_TOKEN_EXPIRE_SECONDS", str(7 * 24 * 3600)))

# ---------------- S3 object storage ----------------
# Leave the keys empty to fall back to the boto3 credential chain (env, profile, role).
AWS_REGION: str = _env("AWS_REGION", "us-east-1")
AWS_ACCESS_KEY_ID: str = _env("AWS_ACCESS_KEY_ID", "")
AWS_SECRET_ACCESS_KEY: str = _env("AWS_SECRET_ACCESS_KEY", "")
AWS_S3_BUCKET_NAME: str = _env("AWS_S3_BUCKET_NAME", "")
S3_ENDPOINT_URL: str = _env("S3_ENDPOINT_URL", "")  # MinIO / localstack

INVOICE_KEY_PREFIX: str = "invoices"
DOWNLOAD_URL_TTL_SECONDS: int = int(_env("DOWNLOAD_URL_TTL_SECONDS", "300"))

# ---------------- Invoice generation ----------------
RATE_LIMIT_COUNT: int = int(_env("RATE_LIMIT_COUNT", "5"))
RATE_LIMIT_WINDOW_SECONDS: float = float(_env("RATE_LIMIT_WINDOW_SECONDS", "60"))
INVOICE_CURRENCY: str = _env("INVOICE_CURRENCY", "Rs.")

# How long shutdown waits for in-flight PDF generation before cancelling it
SHUTDOWN_GRACE_SECONDS: float = float(_env("SHUTDOWN_GRACE_SECONDS", "30"))

# ---------------- HTTP ----------------
CORS_ORIGINS: list[str] = [
    o.strip()
    for o in _env("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]
