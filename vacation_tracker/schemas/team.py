"""
Pydantic schemas for the team configuration document (team-config.json).
"""

from typing import Literal, Optional

from pydantic import Field

from vacation_tracker.schemas.base import BaseSchema

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class Member(BaseSchema):
    """Roster entry."""

    github_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    team: str = Field(min_length=1)
    color: str = Field(pattern=HEX_COLOR)
    role: Literal["admin", "member"] = "member"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class VacationType(BaseSchema):
    """Vacation type catalog entry, e.g. annual leave or a morning half-day."""

    key: str = Field(min_length=1)
    label: str = Field(min_length=1)
    label_name: str = Field(min_length=1)
    color: str = Field(pattern=HEX_COLOR)


class RepositoryRef(BaseSchema):
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)


class TeamConfig(BaseSchema):
    """Team roster and vacation type catalog, read from the data repository."""

    repository: RepositoryRef
    members: list[Member] = []
    vacation_types: list[VacationType] = []

    def find_member(self, github_id: str) -> Optional[Member]:
        return next((m for m in self.members if m.github_id == github_id), None)

    def find_type(self, key: str) -> Optional[VacationType]:
        return next((t for t in self.vacation_types if t.key == key), None)


class TeamConfigResponse(BaseSchema):
    data: TeamConfig
