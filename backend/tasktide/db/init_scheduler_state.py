"""Create the scheduler lock row for deployments that cannot run migrations."""
from tasktide.core.config import get_settings
from tasktide.db.session import SessionLocal
from tasktide.repositories.scheduler_lock import SchedulerLockStore


def main() -> None:
    lock_id = get_settings().scheduler_lock_id
    state = SchedulerLockStore(SessionLocal).get_or_create_lock(lock_id)
    print(f"Scheduler lock {state.id}: is_running={state.is_running}, last_run_date={state.last_run_date}")


if __name__ == "__main__":
    main()
