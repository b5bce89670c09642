from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TypedTaskResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    task_id: str = Field(description="Identifier of the task that produced the result.")
    defaulted_fields: frozenset[str] = Field(
        default_factory=frozenset,
        description="Fields filled from defaults because the payload lacked them.",
    )

    @property
    def is_defaulted(self) -> bool:
        return bool(self.defaulted_fields)


class GlucoseTrendResult(TypedTaskResult):
    time_points: list[int] = Field(description="Minutes after the meal for each sample.")
    glucose_values: list[float] = Field(description="Predicted glucose per time point (mg/dL).")
    peak_value: float = Field(description="Highest predicted glucose value.")
    peak_time_minutes: int = Field(description="Minutes after the meal the peak occurs.")
    impact_level: str = Field(description="Coarse impact bucket: LOW, MEDIUM or HIGH.")
    recovery_time_minutes: int = Field(description="Minutes until glucose is back to baseline.")
    normal_range_low: float
    normal_range_high: float


class EatingTip(BaseModel):
    model_config = ConfigDict(frozen=True)

    order: int
    icon_name: str
    title: str
    description: str
    related_foods: list[str] | None = None


class EatingTipsResult(TypedTaskResult):
    title: str = Field(description="Headline of the eating order advice.")
    tips: list[EatingTip] = Field(default_factory=list, description="Tips in advice order.")
    expected_improvement: str | None = Field(
        default=None, description="Estimated effect of following the advice."
    )
