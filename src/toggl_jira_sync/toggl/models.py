"""Pydantic models for Toggl Track API responses."""

from pydantic import BaseModel, ConfigDict, Field


class TogglTimeEntry(BaseModel):
    """Toggl Track time entry model.

    ``duration`` is in seconds and negative while the timer is running.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int | str
    description: str | None = None
    duration: int = 0
    start: str
    stop: str | None = None
    tags: list[str] | None = None
    project_id: int | None = None
    workspace_id: int | None = Field(default=None, alias="wid")
    billable: bool = False

    @property
    def is_running(self) -> bool:
        """Whether the timer for this entry is still running."""
        return self.duration < 0
