"""Weighted readiness scoring.

Everything here is pure: the same questions, answers and evaluations always
produce the same rows, scores and band. Arithmetic runs on Fractions so that
half-way cases round the same way no matter how the inputs were produced.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Sequence, Union

import structlog

from .models import Answer, Evaluation, Question, ScoreRow, ScoreSummary
from .rubrics import BEHAVIORAL, BEHAVIORAL_RUBRIC, READINESS_BANDS, TECH_RUBRIC, TECHNICAL

logger = structlog.get_logger(__name__)

Number = Union[int, float, Fraction]

_FIELDS = {
    "technicalAccuracy": "technical_accuracy",
    "depthScore": "depth_score",
    "relevanceScore": "relevance_score",
    "clarityScore": "clarity_score",
}


def _exact(value: Optional[Number]) -> Fraction:
    if value is None:
        return Fraction(0)
    if isinstance(value, Fraction):
        return value
    # str() keeps 0.1 as 1/10 rather than the nearest binary float
    return Fraction(str(value))


def round_half_up(value: Number) -> int:
    return math.floor(_exact(value) + Fraction(1, 2))


def clamp(value: Number, lo: Number, hi: Number):
    return max(lo, min(hi, value))


def question_score(question: Question, evaluation: Optional[Evaluation]) -> int:
    if evaluation is None:
        return 0
    rubric = TECH_RUBRIC if question.type == TECHNICAL else BEHAVIORAL_RUBRIC
    total = Fraction(0)
    for key, criterion in rubric["criteria"].items():
        total += criterion["weight"] * _exact(getattr(evaluation, _FIELDS[key]))
    return int(clamp(round_half_up(total / 100), 0, 100))


def weighted_average(rows: Iterable[ScoreRow]) -> int:
    rows = list(rows)
    weight_sum = sum((_exact(r.weight) for r in rows), Fraction(0))
    if weight_sum == 0:
        return 0
    total = sum((_exact(r.weight) * r.score for r in rows), Fraction(0))
    return round_half_up(total / weight_sum)


def readiness_band(overall_score: int) -> str:
    for minimum, band in READINESS_BANDS:
        if overall_score >= minimum:
            return band
    return READINESS_BANDS[-1][1]


def _status(answer: Optional[Answer]) -> str:
    if answer is not None and answer.skipped:
        return "skipped"
    if answer is None or not answer.is_answered:
        return "missing"
    return "answered"


def aggregate(questions: Sequence[Question], answers: Sequence[Answer],
              evaluations: Iterable[Evaluation]) -> ScoreSummary:
    by_question: Dict[str, Evaluation] = {}
    known = {q.id for q in questions}
    for ev in evaluations:
        if ev.question_id not in known:
            logger.warning("Evaluation does not match any question", question_id=ev.question_id)
            continue
        by_question[ev.question_id] = ev
    answer_by_question = {a.question_id: a for a in answers}

    rows: List[ScoreRow] = [
        ScoreRow(
            question_id=q.id,
            type=q.type,
            weight=q.weight,
            score=question_score(q, by_question.get(q.id)),
            status=_status(answer_by_question.get(q.id)),
        )
        for q in questions
    ]
    technical = [r for r in rows if r.type == TECHNICAL]
    behavioral = [r for r in rows if r.type == BEHAVIORAL]
    overall = weighted_average(rows)
    return ScoreSummary(
        per_question=rows,
        overall_score=overall,
        technical_score=weighted_average(technical) if technical else None,
        behavioral_score=weighted_average(behavioral) if behavioral else None,
        readiness_band=readiness_band(overall),
    )
