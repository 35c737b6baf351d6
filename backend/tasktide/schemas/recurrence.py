from enum import Enum as PyEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class RecurringPattern(str, PyEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"


class _RecurringConfigBase(BaseModel):
    interval: int = Field(default=1, ge=1, description="Every N days/weeks/months")

    class Config:
        # Persisted configs use camelCase keys, Python callers use snake_case
        populate_by_name = True
        frozen = True


class DailyConfig(_RecurringConfigBase):
    pattern: Literal["DAILY"] = "DAILY"


class WeeklyConfig(_RecurringConfigBase):
    pattern: Literal["WEEKLY"] = "WEEKLY"
    days_of_week: tuple[Annotated[int, Field(ge=0, le=6)], ...] = Field(
        default=(), alias="daysOfWeek", description="0=Sunday, 6=Saturday"
    )


class MonthlyConfig(_RecurringConfigBase):
    pattern: Literal["MONTHLY"] = "MONTHLY"
    day_of_month: int | None = Field(default=None, ge=1, le=31, alias="dayOfMonth")


class CustomConfig(_RecurringConfigBase):
    """Arbitrary day-count cadence."""

    pattern: Literal["CUSTOM"] = "CUSTOM"


RecurringConfig = Annotated[
    Union[DailyConfig, WeeklyConfig, MonthlyConfig, CustomConfig],
    Field(discriminator="pattern"),
]

recurring_config_adapter = TypeAdapter(RecurringConfig)
