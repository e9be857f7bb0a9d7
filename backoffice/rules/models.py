from typing import Literal

from pydantic import BaseModel, Field, model_validator

AUDIT_CATEGORIES = ["auth", "license", "user", "client", "task", "time", "aml"]


class AuditRules(BaseModel):
    enabled_categories: list[str] = Field(default_factory=lambda: list(AUDIT_CATEGORIES))
    default_limit: int = Field(100, ge=1)
    max_limit: int = Field(500, ge=1)

    @model_validator(mode="after")
    def _default_within_max(self) -> "AuditRules":
        if self.default_limit > self.max_limit:
            raise ValueError(f"default_limit {self.default_limit} exceeds max_limit {self.max_limit}")
        return self


class ExportLabelOverrides(BaseModel):
    header: list[str] | None = None
    no_task: str | None = None
    yes: str | None = None
    no: str | None = None
    title: str | None = None
    total_hours: str | None = None
    billable_hours: str | None = None
    non_billable_hours: str | None = None
    details: str | None = None
    hours_suffix: str | None = None


class ExportRules(BaseModel):
    locale: Literal["nb", "en"] = "nb"
    quoting: Literal["minimal", "none"] = "minimal"
    delimiter: str = Field(",", min_length=1, max_length=1)
    labels: ExportLabelOverrides = Field(default_factory=ExportLabelOverrides)


class TimeRules(BaseModel):
    max_hours_per_entry: int = Field(24, ge=1)


class Rules(BaseModel):
    audit: AuditRules = Field(default_factory=AuditRules)
    export: ExportRules = Field(default_factory=ExportRules)
    time: TimeRules = Field(default_factory=TimeRules)
