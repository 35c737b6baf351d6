"""Startup script for production deployment.

On a fresh database (no tables), creates all tables from models and stamps
Alembic to head. On an existing database, runs Alembic migrations normally.
Either way the scheduler lock row exists afterwards.
"""

import subprocess
import sys

from sqlalchemy import inspect

from tasktide.core.config import get_settings
from tasktide.db.session import SessionLocal, engine
from tasktide.db.base import Base
from tasktide.models import SchedulerState, Task  # noqa: F401
from tasktide.repositories.scheduler_lock import SchedulerLockStore


def main():
    inspector = inspect(engine)
    tables = inspector.get_table_names()

    if "tasks" not in tables:
        print("Fresh database detected, creating all tables...")
        Base.metadata.create_all(bind=engine)
        print("Tables created. Stamping Alembic to head...")
        subprocess.check_call([sys.executable, "-m", "alembic", "stamp", "head"])
        print("Done.")
    else:
        print("Existing database, running migrations...")
        subprocess.check_call([sys.executable, "-m", "alembic", "upgrade", "head"])
        print("Migrations complete.")

    SchedulerLockStore(SessionLocal).get_or_create_lock(get_settings().scheduler_lock_id)
    print("Scheduler lock ready.")


if __name__ == "__main__":
    main()
