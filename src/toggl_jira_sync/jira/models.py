"""Pydantic models for Jira work logs."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TimeBreakdown(BaseModel):
    """One line of the per-entry breakdown of a work log."""

    time_range: str
    duration: str
    description: str


class JiraWorkLog(BaseModel):
    """Work log to be added to a Jira issue."""

    model_config = ConfigDict(populate_by_name=True)

    issue_key: str = Field(alias="issueKey")
    work_date: date | None = Field(default=None, alias="date")
    started_at: str = Field(alias="startedAt")
    time_spent_seconds: int = Field(alias="timeSpentSeconds")
    time_spent_formatted: str = Field(default="", alias="timeSpentFormatted")
    comment: str = ""
    entry_count: int = Field(default=0, alias="entryCount")
    time_breakdown: list[TimeBreakdown] = Field(default_factory=list, alias="timeBreakdown")

    @property
    def started(self) -> str:
        """Start in the format the Jira worklog API expects."""
        start = datetime.fromisoformat(self.started_at.replace("Z", "+00:00"))
        if start.tzinfo is None:
            start = start.astimezone()
        return start.strftime("%Y-%m-%dT%H:%M:%S.000%z")

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to the worklog request body.

        The comment is sent as an Atlassian document, one paragraph per line.
        """
        paragraphs = [
            {"type": "paragraph", "content": [{"type": "text", "text": line}]}
            for line in self.comment.splitlines()
            if line.strip()
        ]
        payload: dict[str, Any] = {
            "timeSpentSeconds": self.time_spent_seconds,
            "started": self.started,
        }
        if paragraphs:
            payload["comment"] = {"type": "doc", "version": 1, "content": paragraphs}
        return payload
