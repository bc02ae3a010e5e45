"""Shared builders and in-memory fakes for the test suite."""

from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from hansard_digest.db.session import Database
from hansard_digest.exceptions import LLMProviderError
from hansard_digest.models.adapter_models import AdapterMetrics, AdapterResponse, AdapterStatus
from hansard_digest.models.debate import Member, RawDebate
from hansard_digest.services.llm_client import LLMResult

MEMBERS = {
    101: Member(member_id=101, display_as="Alice Smith", party="Labour", member_from="Leeds North"),
    102: Member(member_id=102, display_as="Bob Jones", party="Conservative", member_from="Bath"),
    103: Member(member_id=103, display_as="Carol White", party="Liberal Democrat", member_from="Ely"),
}


def contribution(text: str, member_id: Optional[int] = None, attributed_to: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ItemType": "Contribution",
        "MemberId": member_id or 0,
        "AttributedTo": attributed_to,
        "Value": f"<p>{text}</p>",
    }


def make_debate(
    ext_id: str = "DEB-1",
    title: str = "Local Bus Services",
    house: str = "Commons",
    location: str = "Commons Chamber",
    hrs_tag: Optional[str] = "hs_2cDebatedMotion",
    sitting_date: str = "2024-03-05T00:00:00",
    items: Optional[List[Dict[str, Any]]] = None,
    previous_ext_id: Optional[str] = None,
) -> RawDebate:
    if items is None:
        items = [
            contribution("I beg to move that this House supports rural bus routes.", 101),
            contribution("Will the Minister commit £50 million to this programme?", 102),
            contribution("The Government will analyze every option.", 103),
        ]
    return RawDebate.model_validate({
        "Overview": {
            "ExtId": ext_id,
            "Title": title,
            "HRSTag": hrs_tag,
            "Date": sitting_date,
            "Location": location,
            "House": house,
            "PreviousDebateExtId": previous_ext_id,
        },
        "Items": items,
        "Navigator": [
            {"Id": 1, "Title": "Transport", "ExternalId": "PARENT-1", "Timecode": None},
            {"Id": 2, "Title": title, "ExternalId": ext_id, "Timecode": "2024-03-05T14:32:00"},
        ],
    })


def division_entry(ext_id: str, number: int, section: str = "DEB-1") -> Dict[str, Any]:
    return {
        "Id": number * 10,
        "ExternalId": ext_id,
        "DebateSectionExtId": section,
        "Date": "2024-03-05T00:00:00",
        "Time": "19:05",
        "DivisionHasTime": True,
        "AyesCount": 300 + number,
        "NoesCount": 200 - number,
        "House": "Commons",
        "Number": number,
        "TextBeforeVote": "Question put.",
    }


class FakeSource:
    """Records source serving canned debates and divisions."""

    def __init__(
        self,
        debates: Optional[List[RawDebate]] = None,
        divisions: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        unavailable: bool = False,
    ):
        self.debates = {debate.ext_id: debate for debate in debates or []}
        self.divisions = divisions or {}
        self.unavailable = unavailable
        self.division_list_calls: List[str] = []
        self.closed = False

    async def fetch_last_sitting_date(self, house: Optional[str] = None) -> date:
        return date(2024, 3, 5)

    async def fetch(self, sitting_date: date, house: str = "Commons", **kwargs: Any) -> AdapterResponse[RawDebate]:
        metrics = AdapterMetrics(records_attempted=0, records_succeeded=0, records_failed=0, duration_seconds=0.0)
        if self.unavailable:
            return AdapterResponse(
                status=AdapterStatus.SOURCE_UNAVAILABLE,
                data=None,
                metrics=metrics,
                source="fake",
                fetch_timestamp=datetime.utcnow(),
            )
        data = [debate for debate in self.debates.values() if debate.house == house]
        return AdapterResponse(
            status=AdapterStatus.SUCCESS,
            data=data,
            metrics=metrics,
            source="fake",
            fetch_timestamp=datetime.utcnow(),
        )

    async def fetch_debate(self, ext_id: str) -> RawDebate:
        return self.debates[ext_id]

    async def fetch_divisions_list(self, ext_id: str) -> List[Dict[str, Any]]:
        self.division_list_calls.append(ext_id)
        return self.divisions.get(ext_id, [])

    async def fetch_division(self, division_ext_id: str) -> Dict[str, Any]:
        return {
            "AyeMembers": [{"MemberId": 101, "DisplayAs": "Alice Smith", "Party": "Labour"}],
            "NoeMembers": [{"MemberId": 102, "DisplayAs": "Bob Jones", "Party": "Conservative"}],
        }

    async def close(self) -> None:
        self.closed = True


SUMMARY = {
    "title": "MPs back rural buses",
    "sentence1": "Members debated funding for rural bus routes.",
    "sentence2": "The opposition pressed for a clear spending commitment.",
    "sentence3": "The Minister said the Government would analyze the options.",
    "tone": "Contentious",
    "word_count": 40,
}

QUESTION = {
    "question": {
        "text": "Should the Government fund rural bus routes?",
        "topic": "Economy, Business, and Infrastructure",
        "subtopics": ["Transport", "Space Travel"],
    }
}

TOPICS = {
    "topics": [
        {
            "name": "Economy, Business, and Infrastructure",
            "frequency": 3,
            "speakers": [{"name": "Alice Smith", "subtopics": ["Transport"], "frequency": 2}],
        },
        {"name": "Underwater Basket Weaving", "frequency": 1, "speakers": []},
    ]
}

KEY_POINTS = {
    "key_points": [
        {
            "point": "Rural bus routes need long-term funding",
            "speaker": "Alice Smith",
            "support": ["Carol White"],
            "opposition": ["Bob Jones"],
            "context": "Opening speech",
            "keywords": ["buses", "funding", "rural"],
        }
    ]
}

COMMENTS = {
    "comments": [
        {"id": "a", "author": "Alice Smith", "content": "We need buses.", "votes": {"upvotes": 2}},
        {"id": "b", "parent_id": "a", "author": "Bob Jones", "content": "Who pays?"},
    ]
}


def default_responses() -> Dict[str, Any]:
    return {
        "summary": SUMMARY,
        "question": QUESTION,
        "topics": TOPICS,
        "key_points": KEY_POINTS,
        "division_questions": {"questions": []},
        "comment_thread": COMMENTS,
    }


class FakeLLM:
    """
    Structured-output stand-in keyed by generator name.

    Values may be a dict (valid payload), a raw string (schema violation),
    an exception instance (raised), or ``("refusal", reason)``.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None):
        self.responses = default_responses()
        self.responses.update(responses or {})
        self.calls: List[str] = []

    @property
    def enabled(self) -> bool:
        return True

    async def parse(self, *, name, system, prompt, schema, temperature=0.2):
        self.calls.append(name)
        response = self.responses.get(name)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, tuple) and response[0] == "refusal":
            return LLMResult.refused(response[1])
        if isinstance(response, str):
            return LLMResult.schema_violation(raw=response, error="invalid")
        return LLMResult.ok(schema.model_validate(response))

    async def close(self) -> None:
        pass


def provider_error() -> LLMProviderError:
    return LLMProviderError("503 Service Unavailable", status_code=503)


class FakeIndexClient:
    """Index provider recording stores, assistants and batches."""

    def __init__(self, batch_statuses: Optional[List[Dict[str, Any]]] = None):
        self.batch_statuses = batch_statuses
        self.stores: List[str] = []
        self.assistants: List[str] = []
        self.uploads: List[str] = []
        self.batches: List[Dict[str, Any]] = []
        self.polls = 0

    async def upload_file(self, filename: str, content: str) -> str:
        self.uploads.append(filename)
        return f"file-{len(self.uploads)}"

    async def create_vector_store(self, name: str) -> str:
        self.stores.append(name)
        return f"vs-{len(self.stores)}"

    async def create_assistant(self, name: str, vector_store_id: str) -> str:
        self.assistants.append(vector_store_id)
        return f"asst-{len(self.assistants)}"

    async def create_file_batch(self, vector_store_id: str, file_ids: List[str]) -> Dict[str, Any]:
        self.batches.append({"store": vector_store_id, "file_ids": list(file_ids)})
        return {"id": f"batch-{len(self.batches)}", "status": "in_progress"}

    async def retrieve_file_batch(self, vector_store_id: str, batch_id: str) -> Dict[str, Any]:
        self.polls += 1
        if self.batch_statuses is None:
            return {"id": batch_id, "status": "completed", "file_counts": {"failed": 0}}
        index = min(self.polls - 1, len(self.batch_statuses) - 1)
        return {"id": batch_id, **self.batch_statuses[index]}


async def make_database(tmp_path: Path) -> Database:
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await database.initialize()
    await database.create_tables()
    return database
