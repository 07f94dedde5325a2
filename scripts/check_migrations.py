"""CI helper to validate Alembic migrations on a clean database.

Usage:
    python scripts/check_migrations.py

Runs against ALEMBIC_DATABASE_URL / TEST_DATABASE_URL when set, otherwise against a
throwaway SQLite file that is removed afterwards.
"""

import os
from pathlib import Path

from alembic.config import main as alembic_main


def main() -> None:
    temp_db = Path(".alembic_ci.db")
    os.environ.setdefault("APP_ENV", "test")

    db_url = (
        os.getenv("ALEMBIC_DATABASE_URL")
        or os.getenv("TEST_DATABASE_URL")
        or f"sqlite:///{temp_db}"
    )
    os.environ["ALEMBIC_DATABASE_URL"] = db_url

    if temp_db.exists():
        temp_db.unlink()

    try:
        alembic_main(argv=["upgrade", "head"])
        alembic_main(argv=["downgrade", "base"])
        alembic_main(argv=["upgrade", "head"])
    finally:
        if temp_db.exists():
            temp_db.unlink()


if __name__ == "__main__":
    main()
