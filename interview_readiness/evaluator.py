from __future__ import annotations

import json
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog

from .config import Settings
from .llm import CompletionError, OpenAICompleter
from .loaders import as_number, as_str_list, extract_json_object
from .models import Answer, Evaluation, JobContext, Question
from .rubrics import (
    BEHAVIORAL_RUBRIC, HOSTILE_TOKENS, NON_ANSWER_MAX_CHARS, NON_ANSWER_PHRASES,
    SCORING_BANDS, SHORT_ANSWER_CAPS, SHORT_ANSWER_WORDS, SKIP_SENTINELS, TECH_RUBRIC,
)
from .scoring import clamp, round_half_up

logger = structlog.get_logger(__name__)

NO_ANSWER_FEEDBACK = "No answer provided."
NON_ANSWER_FEEDBACK = "The response does not attempt to answer the question."
HOSTILE_FEEDBACK = "The response is unprofessional and does not address the question."
SHORT_ANSWER_FEEDBACK = "The answer is too brief to demonstrate understanding; expand with specifics."
OFFLINE_FEEDBACK = "Offline mode: score estimated from answer length only."
FALLBACK_FEEDBACK = "Could not evaluate this answer automatically; scores are a length-based estimate."

FALLBACK_CONFIDENCE = 0.25

AnswerLike = Union[Answer, str, None]


@dataclass(frozen=True)
class AnswerSignals:
    non_answer: bool
    hostile: bool
    word_count: int


def classify_answer(text: str) -> AnswerSignals:
    t = (text or "").strip()
    lowered = t.lower()
    non_answer = len(t) <= NON_ANSWER_MAX_CHARS or lowered.rstrip(".!? ") in NON_ANSWER_PHRASES
    hostile = any(tok in lowered for tok in HOSTILE_TOKENS)
    return AnswerSignals(non_answer=non_answer, hostile=hostile, word_count=len(t.split()))


@dataclass(frozen=True)
class ServiceScores:
    """Scores as proposed by the model (or a local estimate standing in for it)."""

    relevance: float
    clarity: float
    depth: float
    technical: float
    feedback: str = ""
    detected_issues: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    confidence: float = 0.5


def parse_service_scores(data: Optional[Dict[str, Any]]) -> Optional[ServiceScores]:
    """Validate a parsed model response; None when it carries no usable scores."""
    if not isinstance(data, dict):
        return None
    nums = {k: as_number(data.get(k)) for k in ("relevanceScore", "clarityScore", "depthScore", "technicalAccuracy")}
    if all(v is None for v in nums.values()):
        return None
    confidence = as_number(data.get("confidence"))
    feedback = data.get("feedback")
    return ServiceScores(
        relevance=clamp(nums["relevanceScore"] or 0, 0, 100),
        clarity=clamp(nums["clarityScore"] or 0, 0, 100),
        depth=clamp(nums["depthScore"] or 0, 0, 100),
        technical=clamp(nums["technicalAccuracy"] or 0, 0, 100),
        feedback=feedback.strip() if isinstance(feedback, str) else "",
        detected_issues=as_str_list(data.get("detectedIssues")),
        strengths=as_str_list(data.get("strengths")),
        keywords=as_str_list(data.get("keywords")),
        confidence=clamp(0.5 if confidence is None else confidence, 0, 1),
    )


def length_estimate(word_count: int) -> int:
    return int(clamp(round_half_up(Fraction(word_count, 6) + 30), 0, 100))


def _transcript(answer: AnswerLike) -> str:
    if answer is None:
        return ""
    if isinstance(answer, Answer):
        return "" if answer.skipped else answer.transcript.strip()
    return str(answer).strip()


def zero_evaluation(question: Question) -> Evaluation:
    return Evaluation(
        question_id=question.id,
        relevance_score=0,
        clarity_score=0,
        depth_score=0,
        technical_accuracy=0 if question.is_technical else None,
        feedback=NO_ANSWER_FEEDBACK,
        confidence=1.0,
        source="skipped",
    )


def _estimate(word_count: int, feedback: str, confidence: float, issues: List[str]) -> ServiceScores:
    s = length_estimate(word_count)
    return ServiceScores(s, s, s, s, feedback=feedback, detected_issues=issues, confidence=confidence)


def _format_bands(dimension: str) -> str:
    return "\n".join(f"    {lo}-{hi}: {desc}" for lo, hi, desc in SCORING_BANDS[dimension])


def build_evaluation_prompt(question: Question, answer: str, job_context: Optional[JobContext] = None) -> str:
    rubric = TECH_RUBRIC if question.is_technical else BEHAVIORAL_RUBRIC
    dims = []
    for key in ("relevanceScore", "clarityScore", "depthScore", "technicalAccuracy"):
        if key == "technicalAccuracy" and not question.is_technical:
            dims.append("- technicalAccuracy: behavioral question, return 0")
            continue
        desc = rubric["criteria"][key]["description"]
        dims.append(f"- {key} (0-100): {desc}\n{_format_bands(key)}")
    focus = (
        "Focus on technical correctness, problem-solving approach and understanding of concepts."
        if question.is_technical else
        "Focus on the STAR method (Situation, Task, Action, Result), specific examples and relevance."
    )
    keys = json.dumps(["relevanceScore", "clarityScore", "depthScore", "technicalAccuracy",
                       "feedback", "detectedIssues", "strengths", "keywords", "confidence"])
    bands = "\n".join(dims)
    rubric_name = rubric["rubric_name"]
    job = ""
    if job_context is not None:
        job = f"\nJob Context: {job_context.headline()}\n"
        if job_context.description:
            job += f"Job Description: {job_context.description[:1500]}\n"
    return f"""You are an expert interviewer evaluating a candidate's answer.
Return JSON only with keys: {keys}.
{job}
Question ({question.type}): {question.text}
Answer: {answer}
Rubric: {rubric_name}

Scoring bands:
{bands}
- confidence (0-1): how confident you are in this evaluation

{focus}
Do not reward length on its own. Filler, refusals or unprofessional answers score 0 for relevance and depth.
"""


class AnswerEvaluator:
    def __init__(self, settings: Settings, completer=None):
        self.settings = settings
        self.completer = completer or OpenAICompleter(settings)

    def _ask_model(self, question: Question, text: str,
                   job_context: Optional[JobContext]) -> Optional[ServiceScores]:
        prompt = build_evaluation_prompt(question, text, job_context)
        try:
            raw = self.completer.complete(
                prompt,
                temperature=self.settings.evaluation_temperature,
                max_tokens=self.settings.evaluation_max_tokens,
            )
        except CompletionError as e:
            logger.warning("Evaluation service unavailable", question_id=question.id, error=str(e))
            return None
        except Exception:
            logger.exception("Evaluation request failed unexpectedly", question_id=question.id)
            return None
        scores = parse_service_scores(extract_json_object(raw))
        if scores is None:
            logger.warning("Evaluation response had no usable JSON", question_id=question.id)
        return scores

    def evaluate(self, question: Question, answer: AnswerLike,
                 job_context: Optional[JobContext] = None) -> Evaluation:
        text = _transcript(answer)
        if not text or text.lower() in SKIP_SENTINELS:
            return zero_evaluation(question)

        signals = classify_answer(text)
        if self.settings.offline_mode:
            draft, from_service, source = _estimate(signals.word_count, OFFLINE_FEEDBACK, 0.5, []), False, "offline"
        else:
            draft = self._ask_model(question, text, job_context)
            from_service, source = draft is not None, "model"
            if draft is None:
                draft = _estimate(signals.word_count, FALLBACK_FEEDBACK, FALLBACK_CONFIDENCE,
                                  ["evaluation_unavailable"])
                source = "fallback"
        return apply_local_rules(question, signals, draft, from_service, source)

    def fallback_evaluation(self, question: Question, answer: AnswerLike) -> Evaluation:
        text = _transcript(answer)
        if not text:
            return zero_evaluation(question)
        signals = classify_answer(text)
        draft = _estimate(signals.word_count, FALLBACK_FEEDBACK, FALLBACK_CONFIDENCE, ["evaluation_unavailable"])
        return apply_local_rules(question, signals, draft, False, "fallback")

    def evaluate_all(self, pairs: Sequence[Tuple[Question, AnswerLike]],
                     job_context: Optional[JobContext] = None) -> List[Evaluation]:
        out: List[Evaluation] = []
        for idx, (question, answer) in enumerate(pairs, 1):
            try:
                ev = self.evaluate(question, answer, job_context)
            except Exception:
                logger.exception("Evaluation failed; using fallback", question_id=question.id)
                ev = self.fallback_evaluation(question, answer)
            out.append(ev)
            logger.debug("Evaluated answer", question_id=question.id, position=idx,
                         total=len(pairs), source=ev.source)
        return out


def apply_local_rules(question: Question, signals: AnswerSignals, draft: ServiceScores,
                      from_service: bool, source: str) -> Evaluation:
    """Strict overrides that hold whatever the model said."""
    technical = question.is_technical

    if signals.non_answer or signals.hostile:
        return Evaluation(
            question_id=question.id,
            relevance_score=0,
            clarity_score=min(draft.clarity, 10) if from_service else 0,
            depth_score=0,
            technical_accuracy=0 if technical else None,
            feedback=HOSTILE_FEEDBACK if signals.hostile else NON_ANSWER_FEEDBACK,
            detected_issues=["unprofessional_language" if signals.hostile else "non_answer"],
            confidence=0.9,
            source=source,
        )

    if signals.word_count < SHORT_ANSWER_WORDS:
        return Evaluation(
            question_id=question.id,
            relevance_score=min(draft.relevance, SHORT_ANSWER_CAPS["relevanceScore"]),
            clarity_score=draft.clarity,
            depth_score=min(draft.depth, SHORT_ANSWER_CAPS["depthScore"]),
            technical_accuracy=min(draft.technical, SHORT_ANSWER_CAPS["technicalAccuracy"]) if technical else None,
            feedback=draft.feedback or SHORT_ANSWER_FEEDBACK,
            detected_issues=draft.detected_issues or ["too_short"],
            strengths=draft.strengths,
            keywords=draft.keywords,
            confidence=draft.confidence,
            source=source,
        )

    return Evaluation(
        question_id=question.id,
        relevance_score=draft.relevance,
        clarity_score=draft.clarity,
        depth_score=draft.depth,
        technical_accuracy=draft.technical if technical else None,
        feedback=draft.feedback,
        detected_issues=draft.detected_issues,
        strengths=draft.strengths,
        keywords=draft.keywords,
        confidence=draft.confidence,
        source=source,
    )
