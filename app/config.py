"""Application configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env so SUPABASE_* and other vars are available
load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Storage: "local" or "supabase"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")

# Local storage path (used when STORAGE_BACKEND=local)
LOCAL_STORAGE_PATH = Path(os.getenv("LOCAL_STORAGE_PATH", "uploads")).resolve()
LOCAL_STORAGE_PATH.mkdir(parents=True, exist_ok=True)

# Base URL for serving local files (e.g. http://localhost:8000/files)
LOCAL_FILES_BASE_URL = os.getenv("LOCAL_FILES_BASE_URL", "").rstrip("/")

# Supabase: object storage (STORAGE_BACKEND=supabase) and the relational store
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

# Bucket assumed for entity uploads and for stored URLs that don't name one
DEFAULT_BUCKET = os.getenv("DEFAULT_BUCKET", "books")

# URL lifetimes (seconds)
SIGNED_URL_TTL_SECONDS = int(os.getenv("SIGNED_URL_TTL_SECONDS", 365 * 24 * 3600))  # 1 year
UPLOAD_URL_TTL_SECONDS = int(os.getenv("UPLOAD_URL_TTL_SECONDS", 3600))
DOWNLOAD_URL_TTL_SECONDS = int(os.getenv("DOWNLOAD_URL_TTL_SECONDS", 3600))

# Upper bound for a single object-store upload call
UPLOAD_TIMEOUT_SECONDS = float(os.getenv("UPLOAD_TIMEOUT_SECONDS", "60"))

# File size limits (bytes)
MAX_FILE_SIZE_PDF = int(os.getenv("MAX_FILE_SIZE_PDF", 50 * 1024 * 1024))  # 50 MB
MAX_FILE_SIZE_IMAGE = int(os.getenv("MAX_FILE_SIZE_IMAGE", 10 * 1024 * 1024))  # 10 MB
MAX_FILE_SIZE_AUDIO = int(os.getenv("MAX_FILE_SIZE_AUDIO", 200 * 1024 * 1024))  # 200 MB
MAX_FILE_SIZE_ANY = int(os.getenv("MAX_FILE_SIZE_ANY", 200 * 1024 * 1024))  # 200 MB

# CORS: comma-separated origins, "*" for any
CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

# Dashboard revenue split
GST_RATE = float(os.getenv("GST_RATE", "0.18"))
PLATFORM_COMMISSION_RATE = float(os.getenv("PLATFORM_COMMISSION_RATE", "0.30"))
