from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WirePayload(BaseModel):
    """Base class for payloads decoded from camelCase backend JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class EatingTipResult(WirePayload):
    order: int = Field(description="Position of the tip in the advice.")
    title: str = Field(description="Short headline of the tip.")
    description: str = Field(default="", description="Explanation of the tip.")
    related_foods: list[str] | None = Field(
        default=None, description="Foods from the meal the tip refers to."
    )


class TaskResultPayload(WirePayload):
    """
    Loosely typed result bag shared by every task type.

    Glucose trend tasks fill ``peak_value``, ``peak_time``, ``trend_data`` and
    ``time_points``; eating order tasks fill ``title``, ``tips`` and
    ``expected_improvement``. Only the owning type's fields are meaningful.
    """

    peak_value: float | None = None
    peak_time: str | None = None
    trend_data: list[float] | None = None
    time_points: list[int] | None = None

    title: str | None = None
    tips: list[EatingTipResult] | None = None
    expected_improvement: str | None = None
