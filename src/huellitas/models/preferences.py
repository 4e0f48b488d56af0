"""Pydantic records for per (user, dog) delivery preferences."""

from datetime import time

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from huellitas.models.enums import Category, Priority


def default_categories() -> dict[str, bool]:
    return {c.value: True for c in Category}


class PreferenceUpsert(BaseModel):
    model_config = ConfigDict(extra="forbid")

    categories: dict[Category, bool] = Field(default_factory=default_categories)
    priority_filter: Priority = Priority.LOW
    device_tokens: list[str] = Field(default_factory=list)
    quiet_hours_enabled: bool = False
    quiet_start_time: time | None = None
    quiet_end_time: time | None = None

    @model_validator(mode="after")
    def _quiet_window_complete(self):
        if self.quiet_hours_enabled and (self.quiet_start_time is None or self.quiet_end_time is None):
            raise ValueError("quiet hours need both a start and an end time")
        return self


class Preference(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    dog_id: str
    categories: dict[str, bool]
    priority_filter: Priority
    device_tokens: list[str] = Field(default_factory=list)
    quiet_hours_enabled: bool = False
    quiet_start_time: time | None = None
    quiet_end_time: time | None = None

    @field_validator("categories", mode="before")
    @classmethod
    def _legacy_categories(cls, v):
        # Rows written before the category map existed
        return default_categories() if v is None else v

    @field_validator("device_tokens", mode="before")
    @classmethod
    def _none_tokens(cls, v):
        return v or []
