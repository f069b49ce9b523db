"""
Shared configuration and initialization for the API server.

This module provides centralized access to environment variables, database initialization,
and shared utilities that are used across all API routers.
"""

import os
import sys
import logging
from typing import List

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from charasphere.utils import database
from charasphere.utils.flux import DEFAULT_FLUX_API_URL, FluxUtil
from charasphere.utils.grok import DEFAULT_GROK_BASE_URL, DEFAULT_GROK_MODEL, GrokUtil
from charasphere.utils.logging_utils import configure_logging
from charasphere.utils.sheets import SheetsUtil

# Debug mode detection
DEBUG_MODE = "--debug" in sys.argv or os.getenv("DEBUG_MODE") == "1"

# Configure logging
configure_logging(debug=DEBUG_MODE)

logger = logging.getLogger(__name__)

# Authentication (Supabase-issued JWTs)
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
SUPABASE_JWT_AUDIENCE = os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")

if not SUPABASE_JWT_SECRET:
    logger.warning("SUPABASE_JWT_SECRET is not set; every authenticated request will be rejected")

# AI vendors
GROK_API_KEY = os.getenv("GROK_API_KEY")
GROK_MODEL = os.getenv("GROK_MODEL", DEFAULT_GROK_MODEL)
GROK_BASE_URL = os.getenv("GROK_BASE_URL", DEFAULT_GROK_BASE_URL)
FLUX_API_KEY = os.getenv("FLUX_API_KEY")
FLUX_API_URL = os.getenv("FLUX_API_URL", DEFAULT_FLUX_API_URL)

# Roster sheet
GOOGLE_SHEETS_CREDENTIALS = os.getenv("GOOGLE_SHEETS_CREDENTIALS")
GOOGLE_SHEETS_ID = os.getenv("GOOGLE_SHEETS_ID")

# CORS
ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL")
DB_POOL_SIZE = int(os.getenv("DB_CONNECTION_POOL_SIZE", "6"))
DB_TIMEOUT_SECONDS = int(os.getenv("DB_CONNECTION_TIMEOUT_SECONDS", "30"))
DB_BUSY_TIMEOUT_MS = int(os.getenv("DB_BUSY_TIMEOUT_MS", "5000"))

# Initialize utilities with configuration
database.initialize_database(DATABASE_URL, DB_POOL_SIZE, DB_TIMEOUT_SECONDS, DB_BUSY_TIMEOUT_MS)

# Vendor clients shared by the routers
grok_util = GrokUtil(GROK_API_KEY, GROK_MODEL, GROK_BASE_URL)
flux_util = FluxUtil(FLUX_API_KEY, FLUX_API_URL)
sheets_util = SheetsUtil(GOOGLE_SHEETS_CREDENTIALS, GOOGLE_SHEETS_ID)

if DEBUG_MODE:
    logger.info(
        "Debug mode enabled (grok=%s, flux=%s, sheets=%s)",
        grok_util.configured,
        flux_util.configured,
        sheets_util.configured,
    )
