"""
Configuration settings for the application
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Get the base directory (parent of exam_backend directory)
# Since we're in exam_backend/core/, we need to go up 2 levels to get to project root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Database Configuration
DATABASE_DIR = os.getenv("EXAM_DATABASE_DIR", os.path.join(BASE_DIR, "data"))
DATABASE_PATH = os.path.join(DATABASE_DIR, "app.db")
DATABASE_URL = os.getenv("EXAM_DATABASE_URL", f"sqlite:///{DATABASE_PATH}")
SQL_ECHO = os.getenv("EXAM_SQL_ECHO", "false").lower() == "true"

# Logging Configuration
LOG_LEVEL = os.getenv("EXAM_LOG_LEVEL", "INFO").upper()
# Empty means console only
LOG_DIR = os.getenv("EXAM_LOG_DIR", "")

# Pagination
DEFAULT_PAGE_LIMIT = int(os.getenv("EXAM_DEFAULT_PAGE_LIMIT", "10"))
MAX_PAGE_LIMIT = int(os.getenv("EXAM_MAX_PAGE_LIMIT", "100"))

# Sessions
SESSION_COOKIE_NAME = "session_token"
SESSION_MAX_AGE_SECONDS = int(os.getenv("EXAM_SESSION_MAX_AGE", "86400"))  # 24 hours
