"""Pydantic models for Timetracker API requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TimetrackerTag(BaseModel):
    """Timetracker worklog tag."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | str
    name: str


class TimetrackerWorkLog(BaseModel):
    """Worklog to be created in Timetracker."""

    model_config = ConfigDict(populate_by_name=True)

    description: str | None = None
    duration_in_seconds: int = Field(alias="durationInSeconds")
    is_billable: bool = Field(default=True, alias="isBillable")
    issue_id: str | None = Field(default=None, alias="issueId")
    issue_key: str | None = Field(default=None, exclude=True)
    work_date: str = Field(alias="workDate")
    work_start_time: str = Field(alias="workStartTime")
    worklog_tag_ids: list[int | str] = Field(default_factory=list, alias="worklogTagIds")

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to the worklog request body. Empty tag lists are omitted."""
        payload: dict[str, Any] = {
            "description": self.description,
            "durationInSeconds": self.duration_in_seconds,
            "isBillable": self.is_billable,
            "issueId": self.issue_id,
            "workDate": self.work_date,
            "workStartTime": self.work_start_time,
        }
        if self.worklog_tag_ids:
            payload["worklogTagIds"] = self.worklog_tag_ids
        return payload
