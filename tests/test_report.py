import pytest

from interview_readiness.llm import LLMRequestError
from interview_readiness.metrics import compute_metrics
from interview_readiness.models import Answer, Evaluation, Interview, JobContext, Question
from interview_readiness.report import (
    FAILURE_SUMMARY, GENERIC_SUMMARY, ReportGenerator, build_report_prompt, validate_blocker,
)
from interview_readiness.scoring import aggregate


def flat(qid, score, technical=True):
    return Evaluation(qid, score, score, score, score if technical else None)


def blocker(qid="q1", severity="high", **overrides):
    b = {
        "questionId": qid, "questionText": "How would you optimize a slow database query?",
        "questionType": "technical", "issue": "Vague answer", "severity": severity,
        "impact": "Hurts technical credibility",
    }
    b.update(overrides)
    return b


def narrative(**overrides):
    d = {
        "summary": "Solid technical base, weak on behavioral preparation.",
        "primaryBlockers": [blocker("q1"), blocker("q3", "medium"), blocker("q2", "high", questionType="behavioral")],
        "strengths": ["Clear structure"],
        "areasForImprovement": ["Prepare STAR stories"],
        "recommendations": ["Practice out loud"],
        "aiConfidence": 0.8,
    }
    d.update(overrides)
    return d


def test_service_cannot_override_scores(online, fake, interview):
    completer = fake([narrative(overallScore=99, readinessBand="Ready", technicalScore=99)])
    report = ReportGenerator(online, completer).generate(interview, [flat("q1", 80), flat("q3", 40)])
    # (2*80 + 1*0 + 2*40) / 5
    assert report.overall_score == 48
    assert report.technical_score == 60
    assert report.behavioral_score == 0
    assert report.readiness_band == "Needs Work"
    assert report.summary.startswith("Solid technical base")
    assert report.ai_confidence == 0.8
    assert report.to_dict()["overallScore"] == 48


def test_invalid_blockers_dropped_and_backfilled(online, fake, interview):
    raw = narrative(primaryBlockers=[
        blocker("q1"),
        blocker("q9"),
        blocker("q1", "critical"),
        blocker("q1", impact=""),
        blocker("q3", "medium", questionType="architecture"),
        blocker("q3", "MEDIUM"),
        "oops",
    ])
    report = ReportGenerator(online, fake([raw])).generate(interview, [flat("q1", 80), flat("q3", 40)])
    blockers = report.primary_blockers
    assert [b.question_id for b in blockers] == ["q1", "q2", "q3"]
    assert [b.severity for b in blockers] == ["high", "high", "medium"]
    assert blockers[1].issue == "Question was skipped"
    assert blockers[1].question_type == "behavioral"


def test_blockers_truncated_to_five(online, fake, interview):
    raw = narrative(primaryBlockers=[blocker("q1", issue=f"Issue {i}") for i in range(7)])
    report = ReportGenerator(online, fake([raw])).generate(interview, [flat("q1", 80)])
    assert len(report.primary_blockers) == 5


def test_blockers_sorted_by_severity(online, fake, interview):
    raw = narrative(primaryBlockers=[blocker("q1", "low"), blocker("q3", "high"), blocker("q1", "medium")])
    report = ReportGenerator(online, fake([raw])).generate(interview, [])
    assert [b.severity for b in report.primary_blockers] == ["high", "medium", "low"]


def test_validate_blocker_keeps_suggestion(interview):
    b = validate_blocker(blocker(" q1 ", "High", suggestion="Walk through EXPLAIN output"), interview)
    assert b.question_id == "q1"
    assert b.severity == "high"
    assert b.to_dict()["suggestion"] == "Walk through EXPLAIN output"
    assert validate_blocker(blocker(issue=None), interview) is None


def test_failure_path(online, fake, interview):
    completer = fake(error=LLMRequestError("502 bad gateway"))
    report = ReportGenerator(online, completer).generate(interview, [])
    assert len(completer.prompts) == 1
    assert report.summary == FAILURE_SUMMARY
    assert report.ai_confidence == 0.25
    assert report.strengths == []
    assert report.recommendations == []
    assert report.overall_score == 0
    assert 3 <= len(report.primary_blockers) <= 5
    assert {b.severity for b in report.primary_blockers} == {"high"}


def test_unparseable_response_treated_as_failure(online, fake, interview):
    report = ReportGenerator(online, fake(["Sorry, I cannot help with that."])).generate(interview, [])
    assert report.summary == FAILURE_SUMMARY
    assert report.ai_confidence == 0.25


def test_single_question_interview_still_gets_three_blockers(online, fake):
    interview = Interview([Question("only", "Describe your ideal team.", "behavioral")])
    report = ReportGenerator(online, fake(error=LLMRequestError("down"))).generate(interview, [])
    blockers = report.primary_blockers
    assert len(blockers) == 3
    assert {b.question_id for b in blockers} == {"only"}
    assert len({b.issue for b in blockers}) == 3
    assert blockers[0].issue == "Question was not answered"


def test_ranking_is_deterministic(online, fake):
    questions = [
        Question("q1", "Design a cache", "technical", 2),
        Question("q2", "Explain indexes", "technical", 2),
        Question("q3", "Tell me about a conflict", "behavioral", 1),
    ]
    interview = Interview(questions, [Answer(q.id, "an answer") for q in questions])
    evaluations = [flat("q1", 80), flat("q2", 40), flat("q3", 60, technical=False)]
    generator = ReportGenerator(online, fake(error=LLMRequestError("down")))
    first = generator.generate(interview, evaluations)
    second = generator.generate(interview, evaluations)
    assert [(b.question_id, b.severity) for b in first.primary_blockers] == [
        ("q2", "medium"), ("q1", "low"), ("q3", "low"),
    ]
    assert [b.to_dict() for b in first.primary_blockers] == [b.to_dict() for b in second.primary_blockers]


def test_nothing_answered_caps_confidence(online, fake):
    questions = [Question("q1", "A", "technical"), Question("q2", "B", "behavioral")]
    interview = Interview(questions, [Answer("q1", "", skipped=True), Answer("q2", "", skipped=True)])
    report = ReportGenerator(online, fake([narrative(primaryBlockers=[], aiConfidence=0.95)])).generate(interview, [])
    assert report.ai_confidence <= 0.3
    assert report.metrics.questions_answered == 0
    assert report.metrics.questions_skipped == 2


def test_empty_summary_replaced(online, fake, interview):
    report = ReportGenerator(online, fake([narrative(summary="   ")])).generate(interview, [])
    assert report.summary == GENERIC_SUMMARY


def test_lists_truncated_to_eight(online, fake, interview):
    raw = narrative(strengths=[f"s{i}" for i in range(12)], recommendations=["a", None, "", "b"])
    report = ReportGenerator(online, fake([raw])).generate(interview, [])
    assert report.strengths == [f"s{i}" for i in range(8)]
    assert report.recommendations == ["a", "b"]


@pytest.mark.parametrize("confidence,expected", [(None, 0.5), (7, 1), (-1, 0)])
def test_service_confidence_clamped(online, fake, interview, confidence, expected):
    report = ReportGenerator(online, fake([narrative(aiConfidence=confidence)])).generate(interview, [])
    assert report.ai_confidence == expected


def test_offline_report_makes_no_calls(offline, fake, interview):
    completer = fake([narrative()])
    report = ReportGenerator(offline, completer).generate(interview, [flat("q1", 80), flat("q3", 40)])
    assert completer.prompts == []
    assert report.ai_confidence == 0.5
    assert report.summary.startswith("Overall readiness score is 48/100")
    assert "Avoid skipping questions - attempt all of them" in report.areas_for_improvement
    assert 3 <= len(report.primary_blockers) <= 5


def test_prompt_carries_final_numbers(interview):
    evaluations = {"q1": flat("q1", 80)}
    scores = aggregate(interview.questions, interview.answers, list(evaluations.values()))
    metrics = compute_metrics(interview.questions, interview.answers)
    prompt = build_report_prompt(interview, scores, metrics, evaluations)
    # (2*80) / 5
    assert "Overall score: 32/100" in prompt
    assert "Readiness band: Needs Work" in prompt
    assert "computed score 80/100" in prompt
    assert "NO EVALUATION" in prompt
    assert "[SKIPPED]" in prompt


def test_report_uses_interview_job(online, fake, interview):
    interview.job = JobContext("Data Engineer", "Staff", "Spark pipelines")
    completer = fake([narrative()])
    ReportGenerator(online, completer).generate(interview, [])
    assert "Job: Staff Data Engineer" in completer.prompts[0]
    assert "Job Description: Spark pipelines" in completer.prompts[0]


def test_oversized_confidence_still_produces_report(online, fake, interview):
    completer = fake(['{"summary": "ok", "aiConfidence": 1' + "0" * 400 + "}"])
    report = ReportGenerator(online, completer).generate(interview, [flat("q1", 80)])
    assert report.summary == "ok"
    assert report.ai_confidence == 0.5
    assert report.overall_score == 32


def test_unexpected_completer_error_still_produces_report(online, interview):
    class Hanging:
        def complete(self, prompt, temperature=0.2, max_tokens=500):
            raise TimeoutError("read timed out")

    report = ReportGenerator(online, Hanging()).generate(interview, [flat("q1", 80)])
    assert report.summary == FAILURE_SUMMARY
    assert report.ai_confidence == 0.25
    assert report.overall_score == 32
    assert 3 <= len(report.primary_blockers) <= 5


def test_outage_keeps_computed_scores(online, fake):
    questions = [
        Question("q1", "Design a cache", "technical", 2),
        Question("q2", "Explain indexes", "technical", 2),
        Question("q3", "Tell me about a conflict", "behavioral", 1),
    ]
    interview = Interview(questions, [Answer(q.id, "an answer") for q in questions])
    evaluations = [flat("q1", 80), flat("q2", 40), flat("q3", 60, technical=False)]
    report = ReportGenerator(online, fake(error=LLMRequestError("down"))).generate(interview, evaluations)
    assert report.overall_score == report.technical_score == report.behavioral_score == 60
    assert report.readiness_band == "Almost Ready"
    assert report.ai_confidence == 0.25
    assert report.summary == FAILURE_SUMMARY
