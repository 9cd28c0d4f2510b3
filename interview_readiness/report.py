"""Readiness report generation.

Numbers first, prose second: the aggregate scores and band are computed
locally and handed to the model as fixed facts. Whatever the model returns,
the report carries the locally computed numbers, a validated blocker list
of 3-5 entries (backfilled deterministically when needed) and a calibrated
confidence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import structlog

from .config import Settings
from .llm import CompletionError, OpenAICompleter
from .loaders import as_number, as_str_list, extract_json_object
from .metrics import compute_metrics
from .models import Blocker, Evaluation, Interview, JobContext, Metrics, Report, ScoreRow, ScoreSummary
from .rubrics import (
    BLOCKER_SUGGESTIONS, BLOCKER_TEMPLATES, MAX_BLOCKERS, MAX_LIST_ITEMS, MIN_BLOCKERS,
    MISSING_ISSUE, QUESTION_TYPES, SEVERITY_ORDER, SKIPPED_ISSUE,
)
from .scoring import aggregate, clamp

logger = structlog.get_logger(__name__)

GENERIC_SUMMARY = (
    "The candidate completed a mock interview. Review the scores, primary blockers and "
    "recommendations below to plan the next practice session."
)
FAILURE_SUMMARY = (
    "Narrative feedback could not be generated for this interview. The scores below were "
    "computed from the per-question evaluations and remain valid."
)
FAILURE_CONFIDENCE = 0.25
OFFLINE_CONFIDENCE = 0.5
NO_ANSWERS_CONFIDENCE_CAP = 0.3

_BLOCKER_FIELDS = ("questionId", "questionText", "questionType", "issue", "severity", "impact")


@dataclass(frozen=True)
class Narrative:
    summary: str = ""
    blockers: List[Blocker] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    areas_for_improvement: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    ai_confidence: float = 0.5


def validate_blocker(d: Any, interview: Interview) -> Optional[Blocker]:
    if not isinstance(d, dict):
        return None
    values = {k: d.get(k) for k in _BLOCKER_FIELDS}
    if not all(isinstance(v, str) and v.strip() for v in values.values()):
        return None
    severity = values["severity"].strip().lower()
    qtype = values["questionType"].strip().lower()
    qid = values["questionId"].strip()
    if severity not in SEVERITY_ORDER or qtype not in QUESTION_TYPES or interview.question(qid) is None:
        return None
    suggestion = d.get("suggestion")
    return Blocker(
        question_id=qid,
        question_text=values["questionText"].strip(),
        question_type=qtype,
        issue=values["issue"].strip(),
        severity=severity,
        impact=values["impact"].strip(),
        suggestion=suggestion.strip() if isinstance(suggestion, str) else "",
    )


def parse_narrative(data: Optional[Dict[str, Any]], interview: Interview) -> Optional[Narrative]:
    """Validate a parsed model response; None when it is not a JSON object."""
    if not isinstance(data, dict):
        return None
    raw_blockers = data.get("primaryBlockers")
    blockers = []
    for item in raw_blockers if isinstance(raw_blockers, list) else []:
        b = validate_blocker(item, interview)
        if b is None:
            logger.debug("Dropping invalid blocker", blocker=item)
            continue
        blockers.append(b)
    summary = data.get("summary")
    confidence = as_number(data.get("aiConfidence"))
    return Narrative(
        summary=summary.strip() if isinstance(summary, str) else "",
        blockers=blockers[:MAX_BLOCKERS],
        strengths=as_str_list(data.get("strengths"))[:MAX_LIST_ITEMS],
        areas_for_improvement=as_str_list(data.get("areasForImprovement"))[:MAX_LIST_ITEMS],
        recommendations=as_str_list(data.get("recommendations"))[:MAX_LIST_ITEMS],
        ai_confidence=clamp(0.5 if confidence is None else confidence, 0, 1),
    )


def _severity(score: int) -> str:
    if score < 30:
        return "high"
    if score < 60:
        return "medium"
    return "low"


def _synthesize(row: ScoreRow, interview: Interview, variant: int) -> Blocker:
    question = interview.question(row.question_id)
    templates = BLOCKER_TEMPLATES[row.type]
    issue, impact = templates[variant % len(templates)]
    if variant == 0 and row.status == "skipped":
        issue = SKIPPED_ISSUE
    elif variant == 0 and row.status == "missing":
        issue = MISSING_ISSUE
    return Blocker(
        question_id=row.question_id,
        question_text=question.text if question else "",
        question_type=row.type,
        issue=issue,
        severity=_severity(row.score),
        impact=impact,
        suggestion=BLOCKER_SUGGESTIONS[row.type],
    )


def sort_blockers(blockers: Iterable[Blocker]) -> List[Blocker]:
    return sorted(blockers, key=lambda b: SEVERITY_ORDER[b.severity])


def backfill_blockers(blockers: List[Blocker], rows: List[ScoreRow], interview: Interview) -> List[Blocker]:
    """Top up to at least MIN_BLOCKERS using the weakest weighted questions."""
    result = list(blockers)
    if len(result) < MIN_BLOCKERS:
        ranked = [r for _, r in sorted(enumerate(rows), key=lambda ir: (-(ir[1].weight * (100 - ir[1].score)), ir[0]))]
        covered = {b.question_id for b in result}
        for row in ranked:
            if len(result) >= MAX_BLOCKERS:
                break
            if row.question_id not in covered:
                result.append(_synthesize(row, interview, 0))
                covered.add(row.question_id)
        # interviews with fewer than three questions get extra variants per question
        top = ranked[:MAX_BLOCKERS]
        variant = 1
        while len(result) < MIN_BLOCKERS and top:
            for row in top:
                if len(result) >= MIN_BLOCKERS:
                    break
                result.append(_synthesize(row, interview, variant))
            variant += 1
    return sort_blockers(result)[:MAX_BLOCKERS]


def offline_narrative(scores: ScoreSummary, metrics: Metrics) -> Narrative:
    strengths: List[str] = []
    areas: List[str] = []
    recs: List[str] = []
    tech, behav = scores.technical_score, scores.behavioral_score

    if tech is not None and tech >= 70:
        strengths.append("Strong technical communication")
    if behav is not None and behav >= 70:
        strengths.append("Good behavioral responses")
    if metrics.total_questions and metrics.questions_answered == metrics.total_questions:
        strengths.append("Completed all interview questions")
    if metrics.average_answer_length >= 50:
        strengths.append("Provided detailed, thorough responses")

    if tech is not None and tech < 60:
        areas.append("Technical question responses need more depth")
        recs.append("Practice explaining technical concepts with specific examples")
    if behav is not None and behav < 60:
        areas.append("Behavioral responses could be stronger")
        recs.append("Use the STAR method: Situation, Task, Action, Result")
    if metrics.questions_skipped > 0:
        areas.append("Avoid skipping questions - attempt all of them")
        recs.append("Practice responding to unexpected or difficult questions")
    if metrics.average_answer_length < 30:
        areas.append("Answers are too brief")
        recs.append("Aim for 50+ words per answer with concrete examples")

    summary = (
        f"Overall readiness score is {scores.overall_score}/100 ({scores.readiness_band}). "
        f"{metrics.questions_answered} of {metrics.total_questions} questions were answered, "
        f"averaging {metrics.average_answer_length} words per answer."
    )
    return Narrative(
        summary=summary,
        strengths=strengths or ["Showed willingness to practice and improve"],
        areas_for_improvement=areas or ["Continue practicing to maintain your skills"],
        recommendations=recs or ["Keep practicing regularly to stay interview-ready"],
        ai_confidence=OFFLINE_CONFIDENCE,
    )


def _answer_text(interview: Interview, question_id: str) -> str:
    answer = interview.answer_for(question_id)
    if answer is None:
        return "[NOT ANSWERED]"
    if answer.skipped:
        return "[SKIPPED]"
    return answer.transcript.strip() or "[NOT ANSWERED]"


def _evidence(interview: Interview, scores: ScoreSummary, evaluations: Dict[str, Evaluation]) -> str:
    blocks = []
    for idx, (q, row) in enumerate(zip(interview.questions, scores.per_question), 1):
        lines = [
            f"Question {idx} [id={q.id}] ({q.type}, weight {q.weight}, computed score {row.score}/100):",
            f'"{q.text}"',
            f'Answer: "{_answer_text(interview, q.id)}"',
        ]
        ev = evaluations.get(q.id)
        if ev is None:
            lines.append("NO EVALUATION")
        else:
            lines.append(f"- Relevance: {ev.relevance_score}/100")
            lines.append(f"- Clarity: {ev.clarity_score}/100")
            lines.append(f"- Depth: {ev.depth_score}/100")
            if ev.technical_accuracy is not None:
                lines.append(f"- Technical Accuracy: {ev.technical_accuracy}/100")
            lines.append(f"- Feedback: {ev.feedback}")
            lines.append(f"- Strengths: {', '.join(ev.strengths) or 'none noted'}")
            lines.append(f"- Issues: {', '.join(ev.detected_issues) or 'none noted'}")
        blocks.append("\n".join(lines))
    return "\n---\n".join(blocks)


def build_report_prompt(interview: Interview, scores: ScoreSummary, metrics: Metrics,
                        evaluations: Dict[str, Evaluation], job_context: Optional[JobContext] = None) -> str:
    job = ""
    if job_context is not None:
        job = f"Job: {job_context.headline()}\n"
        if job_context.description:
            job += f"Job Description: {job_context.description[:1500]}\n"
    technical = "n/a" if scores.technical_score is None else scores.technical_score
    behavioral = "n/a" if scores.behavioral_score is None else scores.behavioral_score
    return f"""You are an expert technical recruiter writing an interview readiness report.
{job}
The following results are FINAL and were computed by the scoring system. Do not change,
recompute or contradict them:
- Overall score: {scores.overall_score}/100
- Technical score: {technical}
- Behavioral score: {behavioral}
- Readiness band: {scores.readiness_band}
- Questions answered: {metrics.questions_answered} of {metrics.total_questions} (skipped: {metrics.questions_skipped})
- Average answer length: {metrics.average_answer_length} words

Per-question evidence:
{_evidence(interview, scores, evaluations)}

Return ONLY a JSON object with keys:
{{
  "summary": "<one paragraph on the candidate's performance>",
  "primaryBlockers": [
    {{"questionId": "<id from the evidence>", "questionText": "...", "questionType": "technical|behavioral",
      "issue": "...", "severity": "high|medium|low", "impact": "...", "suggestion": "..."}}
  ],
  "strengths": ["..."],
  "areasForImprovement": ["..."],
  "recommendations": ["..."],
  "aiConfidence": <0-1>
}}

Guidelines:
- primaryBlockers: the 3-5 issues that most hold back readiness, sorted by severity (high first)
- At most 8 strengths, areas for improvement and recommendations
- Be specific and actionable; ground every point in the evidence above
"""


class ReportGenerator:
    def __init__(self, settings: Settings, completer=None):
        self.settings = settings
        self.completer = completer or OpenAICompleter(settings)

    def _ask_model(self, prompt: str, interview: Interview) -> Optional[Narrative]:
        try:
            raw = self.completer.complete(
                prompt,
                temperature=self.settings.report_temperature,
                max_tokens=self.settings.report_max_tokens,
            )
        except CompletionError as e:
            logger.warning("Report service unavailable", interview_id=interview.id, error=str(e))
            return None
        except Exception:
            logger.exception("Report request failed unexpectedly", interview_id=interview.id)
            return None
        narrative = parse_narrative(extract_json_object(raw), interview)
        if narrative is None:
            logger.warning("Report response had no usable JSON", interview_id=interview.id)
        return narrative

    def generate(self, interview: Interview, evaluations: Iterable[Evaluation],
                 job_context: Optional[JobContext] = None) -> Report:
        evaluations = list(evaluations)
        job_context = job_context or interview.job
        scores = aggregate(interview.questions, interview.answers, evaluations)
        metrics = compute_metrics(interview.questions, interview.answers)

        if self.settings.offline_mode:
            narrative = offline_narrative(scores, metrics)
        else:
            by_id = {ev.question_id: ev for ev in evaluations}
            prompt = build_report_prompt(interview, scores, metrics, by_id, job_context)
            narrative = self._ask_model(prompt, interview)
            if narrative is None:
                narrative = Narrative(summary=FAILURE_SUMMARY, ai_confidence=FAILURE_CONFIDENCE)

        confidence = narrative.ai_confidence
        if metrics.questions_answered == 0:
            confidence = min(confidence, NO_ANSWERS_CONFIDENCE_CAP)

        report = Report(
            overall_score=scores.overall_score,
            technical_score=scores.technical_score,
            behavioral_score=scores.behavioral_score,
            readiness_band=scores.readiness_band,
            summary=narrative.summary or GENERIC_SUMMARY,
            primary_blockers=backfill_blockers(narrative.blockers, scores.per_question, interview),
            strengths=narrative.strengths,
            areas_for_improvement=narrative.areas_for_improvement,
            recommendations=narrative.recommendations,
            metrics=metrics,
            ai_confidence=confidence,
            per_question=scores.per_question,
        )
        logger.info(
            "Report generated",
            interview_id=interview.id,
            overall_score=report.overall_score,
            readiness_band=report.readiness_band,
            blockers=len(report.primary_blockers),
            ai_confidence=report.ai_confidence,
        )
        return report
