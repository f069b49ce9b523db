"""
Test environment setup.

Runs before any test module is imported: points the app at a throwaway SQLite
file, sets the JWT secret the tests sign tokens with, and blanks vendor keys so
nothing reaches the network.
"""

import os
import shutil
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="charasphere-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'charasphere-test.db')}"
os.environ["SUPABASE_JWT_SECRET"] = "test-supabase-jwt-secret-for-unit-tests-only"
os.environ["SUPABASE_JWT_AUDIENCE"] = "authenticated"
os.environ["GROK_API_KEY"] = ""
os.environ["FLUX_API_KEY"] = ""
os.environ["GOOGLE_SHEETS_CREDENTIALS"] = ""
os.environ["GOOGLE_SHEETS_ID"] = ""

from charasphere.utils import database  # noqa: E402

database.initialize_database(os.environ["DATABASE_URL"])


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_TEST_DIR, ignore_errors=True)
