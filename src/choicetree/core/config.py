from __future__ import annotations

"""Configuration model for exploration sessions."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ExplorationConfig(BaseModel):
    """
    Options controlling an exploration session.

    ``max_runs`` caps the number of runs started, failed ones included;
    hitting it before the tree is exhausted raises ``ExhaustionLimit``. ``on_failure`` decides what ``explore`` does when the
    program raises: ``raise`` surfaces a ``TargetFailure``, ``skip`` marks the
    failed run's last node as explored and carries on.
    """

    max_runs: Optional[int] = Field(default=None, gt=0)
    on_failure: Literal["raise", "skip"] = "raise"
    record_outcomes: bool = True
    verbose: bool = False

    model_config = ConfigDict(extra="forbid")

    @field_validator("on_failure", mode="before")
    @classmethod
    def _normalize_on_failure(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


__all__ = ["ExplorationConfig"]
