"""Constant values used for tests."""

from pathlib import Path

THIS_DIR = Path(__file__).parent
PROJECT_DIR = (THIS_DIR / "../").resolve()

# Base path for the request routes; must match main.py include_router(..., prefix="/api")
API_BASE = "/api"

# HS256 secret shared by the test settings and the token factory (32+ bytes)
TEST_JWT_SECRET = "test-secret-for-lab-software-requests-api-0123456789"

ADMIN_IDENTITY = "admin@lab.example.edu"
INSTRUCTOR_A = "alice@lab.example.edu"
INSTRUCTOR_B = "bob@lab.example.edu"
