"""Base model for GitLab API responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class GitLabModel(BaseModel):
    """Base model with common behavior for all GitLab API models."""

    model_config = {"extra": "ignore", "populate_by_name": True, "frozen": True}

    @classmethod
    def from_api(cls, data: Any) -> Any:
        """Parse one API object, or a list of them, into model instances."""
        if isinstance(data, list):
            return [cls.model_validate(item) for item in data]
        return cls.model_validate(data)
