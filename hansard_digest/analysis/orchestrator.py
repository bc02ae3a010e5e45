"""
AI analysis orchestration.

Runs the six generators concurrently for one debate and joins on all of
them, then post-processes the merged bundle:

1. normalize tone to neutral / contentious / collaborative
2. repair topic and subtopic choices against the taxonomy
3. convert American spellings in free text to British ones
4. attach division questions to the division records

A refusal from any generator fails the whole debate; any other generator
problem has already been turned into a safe default inside the generator.

Responsibility: Fan-out/join over generators and post-processing
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Mapping, Optional

from ..exceptions import AnalysisError, AnalysisRefusedError, RefusalError
from ..models.analysis import (
    AIContent,
    AIProcessMode,
    SurveyQuestion,
    Tone,
    TopicAnalysis,
)
from ..models.debate import Member, RawDebate
from ..models.division import Division
from ..processing.divisions import merge_division_questions
from ..services.llm_client import LLMClient
from . import taxonomy
from .context import build_speaker_index, format_debate_context
from .generators import (
    AnalysisContext,
    generate_comment_thread,
    generate_division_questions,
    generate_key_points,
    generate_question,
    generate_summary,
    generate_topics,
)
from .translation import translate_content

logger = logging.getLogger(__name__)

Generator = Callable[[LLMClient, AnalysisContext], Awaitable]

# AIContent field -> (mode that selects it, generator)
GENERATORS: Dict[str, tuple] = {
    "summary": (AIProcessMode.SUMMARY, generate_summary),
    "question": (AIProcessMode.QUESTIONS, generate_question),
    "topics": (AIProcessMode.TOPICS, generate_topics),
    "key_points": (AIProcessMode.KEYPOINTS, generate_key_points),
    "division_questions": (AIProcessMode.DIVISIONS, generate_division_questions),
    "comment_thread": (AIProcessMode.COMMENTS, generate_comment_thread),
}


def repair_topics(topics: List[TopicAnalysis]) -> List[TopicAnalysis]:
    """Drop topics outside the taxonomy and fix each speaker's subtopics."""
    repaired = []
    for topic in topics:
        if not taxonomy.is_valid_topic(topic.name):
            logger.info("Dropping unknown topic %r", topic.name)
            continue
        for speaker in topic.speakers:
            speaker.subtopics = taxonomy.repair_subtopics(topic.name, speaker.subtopics)
        repaired.append(topic)
    return repaired


def repair_question(question: SurveyQuestion) -> SurveyQuestion:
    if not question.text:
        return question
    if not taxonomy.is_valid_topic(question.topic):
        question.topic = taxonomy.TOPIC_NAMES[0]
    question.subtopics = taxonomy.repair_subtopics(question.topic, question.subtopics)
    return question


def post_process(content: AIContent, divisions: Optional[List[Division]]) -> AIContent:
    """Apply tone, taxonomy, spelling and division reconciliation."""
    if content.summary is not None:
        content.summary.tone = Tone.normalize(content.summary.tone).value
    if content.topics is not None:
        content.topics = repair_topics(content.topics)
    if content.question is not None:
        content.question = repair_question(content.question)

    translated = AIContent.model_validate(
        translate_content(content.model_dump(by_alias=True, exclude_none=True))
    )

    if translated.division_questions is not None and divisions:
        merge_division_questions(divisions, translated.division_questions)
    return translated


class AnalysisOrchestrator:
    """Produces the AI content bundle for a single debate."""

    def __init__(self, llm: LLMClient, max_context_words: int = 75000):
        self.llm = llm
        self.max_context_words = max_context_words

    def _selected(self, mode: Optional[AIProcessMode], has_divisions: bool) -> Dict[str, Generator]:
        selected = {}
        for field_name, (field_mode, generator) in GENERATORS.items():
            if mode is not None and mode != field_mode:
                continue
            if field_name == "division_questions" and not has_divisions:
                continue
            selected[field_name] = generator
        return selected

    async def analyse(
        self,
        debate: RawDebate,
        debate_type: str,
        members: Mapping[int, Member],
        divisions: Optional[List[Division]] = None,
        mode: Optional[AIProcessMode] = None,
    ) -> AIContent:
        """
        Run the selected generators concurrently and merge their output.

        Args:
            debate: Eligible debate
            debate_type: Label from the classifier
            members: Member lookup for speaker attribution
            divisions: Normalized divisions, updated in place with AI questions
            mode: Run a single generator instead of all six

        Raises:
            AnalysisRefusedError: A generator was refused by the provider
            AnalysisError: A generator failed in an unexpected way
        """
        ctx = AnalysisContext(
            debate=debate,
            debate_type=debate_type,
            transcript=format_debate_context(debate, members, self.max_context_words),
            speakers=build_speaker_index(debate, members),
            divisions=divisions,
        )
        selected = self._selected(mode, bool(divisions))
        logger.debug("Running %s generators for %s", len(selected), debate.ext_id)

        outcomes = await asyncio.gather(
            *(generator(self.llm, ctx) for generator in selected.values()),
            return_exceptions=True,
        )

        refusals = [o for o in outcomes if isinstance(o, RefusalError)]
        if refusals:
            logger.warning("Analysis refused for %s: %s", debate.ext_id, refusals[0])
            raise AnalysisRefusedError(str(refusals[0])) from refusals[0]

        for field_name, outcome in zip(selected, outcomes):
            if isinstance(outcome, BaseException):
                raise AnalysisError(f"{field_name} generator crashed: {outcome!r}") from outcome

        content = AIContent(**dict(zip(selected, outcomes)))
        return post_process(content, divisions)
