"""
Division (recorded vote) models.

Normalized from the Hansard divisions endpoints; AI-authored fields start
empty and are filled by the reconciler after analysis.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

QUESTION_PLACEHOLDER = "Question unavailable"
CONTEXT_PLACEHOLDER = "No explanation available"


class DivisionMember(BaseModel):
    member_id: Optional[int] = None
    display_as: str = ""
    party: Optional[str] = None


class Division(BaseModel):
    """Normalized vote record tied to a debate by external id."""
    division_id: int
    external_id: str
    debate_section_ext_id: str
    division_date: Optional[date] = None
    time: Optional[str] = None
    has_time: bool = False
    ayes_count: int = 0
    noes_count: int = 0
    house: Optional[str] = None
    division_number: Optional[int] = None
    text_before_vote: Optional[str] = None
    text_after_vote: Optional[str] = None
    is_committee_division: bool = False
    aye_members: List[DivisionMember] = Field(default_factory=list)
    noe_members: List[DivisionMember] = Field(default_factory=list)

    # Filled by AI reconciliation
    ai_question: Optional[str] = None
    ai_topic: Optional[str] = None
    ai_context: Optional[str] = None
    ai_key_arguments: dict = Field(default_factory=dict)

    def apply_placeholders(self) -> None:
        self.ai_question = QUESTION_PLACEHOLDER
        self.ai_topic = ""
        self.ai_context = CONTEXT_PLACEHOLDER
        self.ai_key_arguments = {"for": "", "against": ""}

    @property
    def has_ai_content(self) -> bool:
        return bool(self.ai_question) and self.ai_question != QUESTION_PLACEHOLDER
