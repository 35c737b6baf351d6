from datetime import timedelta

from sqlalchemy.orm import Session

from tasktide.db.session import SessionLocal
from tasktide.models.task import Task, TaskPriority, utcnow
from tasktide.schemas.recurrence import DailyConfig, MonthlyConfig, WeeklyConfig
from tasktide.services.recurrence import calculate_initial_next_generation_date

DEMO_USER_ID = 1
DEMO_PROJECT_ID = 1


def seed_demo_data(db: Session) -> None:
    existing = db.query(Task).filter(
        Task.user_id == DEMO_USER_ID,
        Task.is_recurring.is_(True),
    ).first()
    if existing:
        return

    now = utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    configs = [
        ("Stand-up notes", DailyConfig(interval=1), TaskPriority.URGENT_IMPORTANT),
        (
            "Review pull requests",
            WeeklyConfig(interval=1, days_of_week=(1, 3, 5)),
            TaskPriority.NOT_URGENT_IMPORTANT,
        ),
        (
            "Send invoices",
            MonthlyConfig(interval=1, day_of_month=31),
            TaskPriority.URGENT_NOT_IMPORTANT,
        ),
    ]

    templates = [
        Task(
            user_id=DEMO_USER_ID,
            project_id=DEMO_PROJECT_ID,
            title=title,
            description=f"Demo recurring task: {title.lower()}",
            priority=priority.value,
            start_date=today,
            start_time="09:00",
            due_date=today + timedelta(days=1),
            due_time="17:00",
            is_recurring=True,
            recurring_pattern=config.pattern,
            recurring_config=config.model_dump(by_alias=True, mode="json"),
            recurring_start_date=today,
            next_generation_date=calculate_initial_next_generation_date(config, now),
        )
        for title, config, priority in configs
    ]
    db.add_all(templates)
    db.commit()


if __name__ == "__main__":
    with SessionLocal() as session:
        seed_demo_data(session)
    print("Demo recurring tasks seeded!")
