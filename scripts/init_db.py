import os
import sys
from pathlib import Path

from sqlalchemy import create_engine

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.qms.models import Base


def create_tables(*, database_url: str | None = None) -> None:
    """
    Create the record-store tables directly (local/dev use; production runs `alembic upgrade head`).
    Idempotent: existing tables are left alone.
    """
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///qms.db").strip()
    engine = create_engine(db_url, future=True)
    Base.metadata.create_all(bind=engine)
    engine.dispose()
    print(f"Tables ready on {db_url.split('@')[-1]}")


def main() -> None:
    create_tables(database_url=None)


if __name__ == "__main__":
    main()
