"""
Debate Pydantic models.

Mirror the Hansard API debate payload (Overview, Items, Navigator,
ChildDebates) using snake_case fields with the API's PascalCase aliases,
plus the member record used for speaker attribution.
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONTRIBUTION_ITEM_TYPE = "Contribution"


class _HansardModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class DebateOverview(_HansardModel):
    """Header block of a debate."""
    ext_id: str = Field(alias="ExtId")
    title: str = Field(default="", alias="Title")
    hrs_tag: Optional[str] = Field(default=None, alias="HRSTag")
    sitting_date: Optional[date] = Field(default=None, alias="Date")
    location: Optional[str] = Field(default=None, alias="Location")
    house: Optional[str] = Field(default=None, alias="House")
    previous_debate_ext_id: Optional[str] = Field(default=None, alias="PreviousDebateExtId")
    previous_debate_title: Optional[str] = Field(default=None, alias="PreviousDebateTitle")
    next_debate_ext_id: Optional[str] = Field(default=None, alias="NextDebateExtId")
    next_debate_title: Optional[str] = Field(default=None, alias="NextDebateTitle")

    @field_validator("sitting_date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        # API sends "2024-01-15T00:00:00"
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        if isinstance(value, datetime):
            return value.date()
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _none_title(cls, value):
        return value or ""


class DebateItem(_HansardModel):
    """One transcript item (contribution, timestamp, heading)."""
    item_type: Optional[str] = Field(default=None, alias="ItemType")
    item_id: Optional[int] = Field(default=None, alias="ItemId")
    member_id: Optional[int] = Field(default=None, alias="MemberId")
    attributed_to: Optional[str] = Field(default=None, alias="AttributedTo")
    value: Optional[str] = Field(default=None, alias="Value")
    order_in_section: Optional[int] = Field(default=None, alias="OrderInSection")
    timecode: Optional[str] = Field(default=None, alias="Timecode")
    external_id: Optional[str] = Field(default=None, alias="ExternalId")
    hrs_tag: Optional[str] = Field(default=None, alias="HRSTag")

    @field_validator("member_id", mode="before")
    @classmethod
    def _zero_member(cls, value):
        # Unattributed items carry MemberId 0
        if value in (0, "0", ""):
            return None
        return value

    @property
    def is_contribution(self) -> bool:
        return self.item_type == CONTRIBUTION_ITEM_TYPE


class NavigatorEntry(_HansardModel):
    """Breadcrumb entry from the debate navigator."""
    id: Optional[int] = Field(default=None, alias="Id")
    title: Optional[str] = Field(default=None, alias="Title")
    parent_id: Optional[int] = Field(default=None, alias="ParentId")
    external_id: Optional[str] = Field(default=None, alias="ExternalId")
    hrs_tag: Optional[str] = Field(default=None, alias="HRSTag")
    timecode: Optional[str] = Field(default=None, alias="Timecode")


class RawDebate(_HansardModel):
    """Full debate payload as returned by the records source."""
    overview: DebateOverview = Field(alias="Overview")
    items: List[DebateItem] = Field(default_factory=list, alias="Items")
    navigator: List[NavigatorEntry] = Field(default_factory=list, alias="Navigator")
    child_debates: List["RawDebate"] = Field(default_factory=list, alias="ChildDebates")

    @field_validator("items", "navigator", "child_debates", mode="before")
    @classmethod
    def _none_list(cls, value):
        return value or []

    @property
    def ext_id(self) -> str:
        return self.overview.ext_id

    @property
    def house(self) -> str:
        return self.overview.house or ""

    @property
    def is_lords(self) -> bool:
        return self.house == "Lords" or "Lords" in (self.overview.location or "")

    @property
    def contributions(self) -> List[DebateItem]:
        return [item for item in self.items if item.is_contribution]

    @property
    def parent(self) -> Optional[NavigatorEntry]:
        # Navigator ends with the debate itself; the entry before it is the parent
        if len(self.navigator) >= 2:
            return self.navigator[-2]
        return None

    @property
    def start_time(self) -> Optional[str]:
        for entry in self.navigator:
            if entry.external_id == self.ext_id:
                return entry.timecode
        return None

    def member_ids(self) -> List[int]:
        seen: List[int] = []
        for item in self.contributions:
            if item.member_id is not None and item.member_id not in seen:
                seen.append(item.member_id)
        return seen


class DebateClassification(BaseModel):
    """Eligibility decision and derived type for one debate."""
    eligible: bool
    type: Optional[str] = None
    reason: Optional[str] = None


class Member(BaseModel):
    """Member of either house, as stored in the members table."""
    model_config = ConfigDict(from_attributes=True)

    member_id: int
    display_as: str
    party: Optional[str] = None
    member_from: Optional[str] = None
    house: Optional[str] = None


class MemberSearchResult(_HansardModel):
    """One row of the Hansard member search (current and former members)."""
    member_id: int = Field(alias="MemberId")
    display_as: str = Field(default="", alias="DisplayAs")
    party: Optional[str] = Field(default=None, alias="Party")
    member_from: Optional[str] = Field(default=None, alias="MemberFrom")
    house: Optional[str] = Field(default=None, alias="House")

    def to_member(self) -> Member:
        return Member(
            member_id=self.member_id,
            display_as=self.display_as,
            party=self.party,
            member_from=self.member_from,
            house=self.house,
        )


class MemberPage(BaseModel):
    """
    One page of member search results.

    ``rows`` counts what the API returned, including rows that failed
    validation, so paging advances past them.
    """
    members: List[Member] = Field(default_factory=list)
    rows: int = 0
    total: Optional[int] = None


class SpeakerRef(BaseModel):
    """Speaker descriptor attached to AI output."""
    name: str
    member_id: Optional[int] = None
    party: Optional[str] = None
    constituency: Optional[str] = None

    @classmethod
    def from_member(cls, member: Member) -> "SpeakerRef":
        return cls(
            name=member.display_as,
            member_id=member.member_id,
            party=member.party,
            constituency=member.member_from,
        )
