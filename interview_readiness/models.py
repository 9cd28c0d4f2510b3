"""Typed records for interviews, evaluations and readiness reports.

Attributes are snake_case; ``to_dict`` / ``from_dict`` use the camelCase keys
that the stored JSON and the UI expect.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .config import TRUTHY
from .rubrics import BEHAVIORAL, QUESTION_TYPES, SKIP_SENTINELS, TECHNICAL


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return value is True or value == 1


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    type: str = BEHAVIORAL
    weight: float = 1
    category: str = ""
    difficulty: str = "medium"

    @property
    def is_technical(self) -> bool:
        return self.type == TECHNICAL

    @classmethod
    def from_dict(cls, d: Dict[str, Any], index: int = 1) -> "Question":
        qtype = str(d.get("type") or "").strip().lower()
        if qtype not in QUESTION_TYPES:
            qtype = BEHAVIORAL
        weight = d.get("weight", 1)
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight <= 0:
            weight = 1
        elif isinstance(weight, float) and not math.isfinite(weight):
            weight = 1
        return cls(
            id=str(d.get("id") or f"q{index}"),
            text=str(d.get("text") or d.get("question") or ""),
            type=qtype,
            weight=weight,
            category=str(d.get("category") or ""),
            difficulty=str(d.get("difficulty") or "medium"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "type": self.type,
            "weight": self.weight,
            "category": self.category,
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True)
class Answer:
    question_id: str
    transcript: str = ""
    skipped: bool = False
    submitted_at: datetime = field(default_factory=_utcnow)

    @property
    def is_answered(self) -> bool:
        text = self.transcript.strip()
        return not self.skipped and bool(text) and text.lower() not in SKIP_SENTINELS

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Answer":
        submitted = d.get("submittedAt")
        if isinstance(submitted, str) and submitted:
            submitted_at = datetime.fromisoformat(submitted.replace("Z", "+00:00"))
        else:
            submitted_at = _utcnow()
        return cls(
            question_id=str(d.get("questionId", "")),
            transcript=str(d.get("transcript") or ""),
            skipped=_flag(d.get("skipped", False)),
            submitted_at=submitted_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "transcript": self.transcript,
            "skipped": self.skipped,
            "submittedAt": self.submitted_at.isoformat(),
        }


@dataclass(frozen=True)
class JobContext:
    title: str
    level: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "JobContext":
        return cls(
            title=str(d.get("title") or ""),
            level=str(d.get("level") or ""),
            description=str(d.get("description") or ""),
        )

    def headline(self) -> str:
        return f"{self.level} {self.title}".strip()


class Interview:
    """An ordered question list plus at most one answer per question."""

    def __init__(self, questions: List[Question], answers: Optional[List[Answer]] = None,
                 interview_id: str = "", job: Optional[JobContext] = None):
        ids = [q.id for q in questions]
        if len(set(ids)) != len(ids):
            raise ValueError("Question ids must be unique within an interview.")
        self.id = interview_id
        self.job = job
        self.questions: Tuple[Question, ...] = tuple(questions)
        self._by_id = {q.id: q for q in self.questions}
        self._answers: Dict[str, Answer] = {}
        for a in answers or []:
            self._store(a)

    def _store(self, answer: Answer) -> None:
        if answer.question_id not in self._by_id:
            raise ValueError(f"Answer references unknown question '{answer.question_id}'.")
        # resubmission replaces the earlier answer
        self._answers[answer.question_id] = answer

    def record_answer(self, question_id: str, transcript: str = "", skipped: bool = False,
                      submitted_at: Optional[datetime] = None) -> Answer:
        answer = Answer(
            question_id=question_id,
            transcript=transcript or "",
            skipped=skipped,
            submitted_at=submitted_at or _utcnow(),
        )
        self._store(answer)
        return answer

    @property
    def answers(self) -> List[Answer]:
        return [self._answers[q.id] for q in self.questions if q.id in self._answers]

    def question(self, question_id: str) -> Optional[Question]:
        return self._by_id.get(question_id)

    def answer_for(self, question_id: str) -> Optional[Answer]:
        return self._answers.get(question_id)

    def pairs(self) -> List[Tuple[Question, Optional[Answer]]]:
        return [(q, self._answers.get(q.id)) for q in self.questions]

    @property
    def all_answered(self) -> bool:
        return all(q.id in self._answers for q in self.questions)


@dataclass(frozen=True)
class Evaluation:
    question_id: str
    relevance_score: float
    clarity_score: float
    depth_score: float
    technical_accuracy: Optional[float]
    feedback: str = ""
    detected_issues: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    confidence: float = 0.5
    source: str = "model"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "relevanceScore": self.relevance_score,
            "clarityScore": self.clarity_score,
            "depthScore": self.depth_score,
            "technicalAccuracy": self.technical_accuracy,
            "feedback": self.feedback,
            "detectedIssues": list(self.detected_issues),
            "strengths": list(self.strengths),
            "keywords": list(self.keywords),
            "confidence": self.confidence,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Evaluation":
        return cls(
            question_id=str(d["questionId"]),
            relevance_score=d.get("relevanceScore", 0),
            clarity_score=d.get("clarityScore", 0),
            depth_score=d.get("depthScore", 0),
            technical_accuracy=d.get("technicalAccuracy"),
            feedback=d.get("feedback", ""),
            detected_issues=list(d.get("detectedIssues", [])),
            strengths=list(d.get("strengths", [])),
            keywords=list(d.get("keywords", [])),
            confidence=d.get("confidence", 0.5),
            source=d.get("source", "model"),
        )


@dataclass(frozen=True)
class ScoreRow:
    question_id: str
    type: str
    weight: float
    score: int
    status: str = "answered"  # answered | skipped | missing

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "type": self.type,
            "weight": self.weight,
            "score": self.score,
            "status": self.status,
        }


@dataclass(frozen=True)
class ScoreSummary:
    per_question: List[ScoreRow]
    overall_score: int
    technical_score: Optional[int]
    behavioral_score: Optional[int]
    readiness_band: str


@dataclass(frozen=True)
class Blocker:
    question_id: str
    question_text: str
    question_type: str
    issue: str
    severity: str
    impact: str
    suggestion: str = ""

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "questionId": self.question_id,
            "questionText": self.question_text,
            "questionType": self.question_type,
            "issue": self.issue,
            "severity": self.severity,
            "impact": self.impact,
        }
        if self.suggestion:
            d["suggestion"] = self.suggestion
        return d


@dataclass(frozen=True)
class Metrics:
    average_answer_length: int
    questions_answered: int
    questions_skipped: int
    total_questions: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "averageAnswerLength": self.average_answer_length,
            "questionsAnswered": self.questions_answered,
            "questionsSkipped": self.questions_skipped,
            "totalQuestions": self.total_questions,
        }


@dataclass(frozen=True)
class Report:
    overall_score: int
    technical_score: Optional[int]
    behavioral_score: Optional[int]
    readiness_band: str
    summary: str
    primary_blockers: List[Blocker]
    strengths: List[str]
    areas_for_improvement: List[str]
    recommendations: List[str]
    metrics: Metrics
    ai_confidence: float
    per_question: List[ScoreRow] = field(default_factory=list)
    generated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "technicalScore": self.technical_score,
            "behavioralScore": self.behavioral_score,
            "readinessBand": self.readiness_band,
            "summary": self.summary,
            "primaryBlockers": [b.to_dict() for b in self.primary_blockers],
            "strengths": list(self.strengths),
            "areasForImprovement": list(self.areas_for_improvement),
            "recommendations": list(self.recommendations),
            "metrics": self.metrics.to_dict(),
            "aiConfidence": self.ai_confidence,
            "perQuestion": [r.to_dict() for r in self.per_question],
            "generatedAt": self.generated_at.isoformat(),
        }
