"""
Project model - a named grouping of blocks owned by a user.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Project(BaseModel):
    """A user's project."""

    model_config = {"extra": "ignore"}

    id: str = Field(..., description="Unique project ID (prj_xxx)")
    user_id: str | None = Field(default=None, description="Owner user ID")
    name: str
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ProjectInput(BaseModel):
    """Input for creating a project."""

    name: str = Field(..., min_length=1)
    description: str = ""


class ProjectUpdate(BaseModel):
    """Partial project update."""

    name: str | None = None
    description: str | None = None

    def provided(self) -> dict:
        """Fields to write; an empty name is ignored."""
        updates = {}
        if self.name:
            updates["name"] = self.name
        if self.description is not None:
            updates["description"] = self.description
        return updates
