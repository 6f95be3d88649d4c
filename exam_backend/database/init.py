"""
Database initialization script
Creates the database file and all tables from the ORM models
Run: python -m exam_backend.database.init
"""
import sys

from exam_backend.core.config import DATABASE_URL
from exam_backend.core.database import init_db
from exam_backend.core.logger import setup_logging


def main():
    """Initialize the database by creating every table"""
    setup_logging()

    print("=" * 60)
    print("Initializing Exam Backend Database")
    print("=" * 60)
    print(f"Database URL: {DATABASE_URL}")
    print("=" * 60)

    try:
        init_db()
    except Exception as e:
        print(f"\n[ERROR] Error initializing database: {e}")
        raise

    print("\n[SUCCESS] Database initialized successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
