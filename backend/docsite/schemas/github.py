from pydantic import BaseModel, ConfigDict
from typing import Optional


class Repository(BaseModel):
    """The fields of a GitHub repository listing this service reads."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    archived: bool = False


class ApiModule(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    html: str  # API.md rendered as HTML


class LatestUpdate(BaseModel):
    """Most recent activity across commits and issues; all fields unset when there is none."""
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    updated: Optional[str] = None  # upstream ISO 8601 timestamp, unmodified
    url: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.title is None and self.updated is None and self.url is None
