"""
Component base class for host-side data.

Components are pydantic models, which gives validation on construction
and assignment and trivial JSON dumps.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Component(BaseModel):
    """Base class for the in-memory host components."""

    model_config = ConfigDict(
        # Profiles and other engine objects are stored as-is
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra='forbid',
    )

    def clone(self) -> Component:
        """Create a deep copy of this component."""
        return self.model_copy(deep=True)
