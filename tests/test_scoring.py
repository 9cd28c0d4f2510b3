from dataclasses import replace

import pytest

from interview_readiness.models import Answer, Evaluation, Question, ScoreRow
from interview_readiness.scoring import aggregate, question_score, readiness_band, round_half_up, weighted_average


def ev(qid, relevance, clarity, depth, technical=None):
    return Evaluation(qid, relevance, clarity, depth, technical)


def flat(qid, score, technical=True):
    return ev(qid, score, score, score, score if technical else None)


def test_technical_formula():
    q = Question("q1", "T", "technical")
    # 0.35*100 + 0.25*60 + 0.20*80 + 0.20*40
    assert question_score(q, ev("q1", 80, 40, 60, 100)) == 74


def test_behavioral_formula_ignores_technical_accuracy():
    q = Question("q1", "B", "behavioral")
    # 0.40*70 + 0.30*50 + 0.30*90
    assert question_score(q, ev("q1", 70, 50, 90, 100)) == 70


def test_missing_evaluation_scores_zero():
    assert question_score(Question("q1", "T", "technical"), None) == 0


def test_half_way_scores_round_up():
    q = Question("q1", "B", "behavioral")
    # 18 + 16.5 + 12 = 46.5
    assert question_score(q, ev("q1", 45, 55, 40)) == 47
    assert round_half_up(2.5) == 3
    assert round_half_up(59.5) == 60
    assert round_half_up(59.49) == 59


def test_weighted_average_edge_cases():
    assert weighted_average([]) == 0
    assert weighted_average([ScoreRow("q1", "technical", 0, 90)]) == 0
    rows = [ScoreRow("q1", "technical", 1, 90), ScoreRow("q2", "technical", 3, 50)]
    assert weighted_average(rows) == 60


@pytest.mark.parametrize("score,band", [
    (100, "Ready"), (80, "Ready"), (79, "Almost Ready"), (60, "Almost Ready"),
    (59, "Needs Work"), (0, "Needs Work"),
])
def test_readiness_band_boundaries(score, band):
    assert readiness_band(score) == band


def scenario():
    questions = [
        Question("q1", "Design a cache", "technical", 2),
        Question("q2", "Explain indexes", "technical", 2),
        Question("q3", "Tell me about a conflict", "behavioral", 1),
    ]
    answers = [Answer("q1", "answer one"), Answer("q2", "answer two"), Answer("q3", "answer three")]
    evaluations = [flat("q1", 80), flat("q2", 40), flat("q3", 60, technical=False)]
    return questions, answers, evaluations


def test_end_to_end_scenario():
    result = aggregate(*scenario())
    assert [r.score for r in result.per_question] == [80, 40, 60]
    assert result.overall_score == 60
    assert result.technical_score == 60
    assert result.behavioral_score == 60
    assert result.readiness_band == "Almost Ready"


def test_aggregate_is_deterministic():
    assert aggregate(*scenario()) == aggregate(*scenario())


def test_scaling_weights_does_not_change_scores():
    questions, answers, evaluations = scenario()
    scaled = [replace(q, weight=q.weight * 3.5) for q in questions]
    a, b = aggregate(questions, answers, evaluations), aggregate(scaled, answers, evaluations)
    assert (a.overall_score, a.technical_score, a.behavioral_score) == (b.overall_score, b.technical_score, b.behavioral_score)


def test_unanswered_questions_stay_in_denominator():
    questions, answers, evaluations = scenario()
    result = aggregate(questions, answers[:2], evaluations[:2])
    assert result.per_question[2].score == 0
    assert result.per_question[2].status == "missing"
    assert result.behavioral_score == 0
    # (2*80 + 2*40 + 1*0) / 5
    assert result.overall_score == 48


def test_type_scores_are_none_when_type_absent():
    questions = [Question("q1", "T", "technical")]
    result = aggregate(questions, [], [flat("q1", 90)])
    assert result.technical_score == 90
    assert result.behavioral_score is None
    assert isinstance(result.overall_score, int)


def test_unknown_and_duplicate_evaluations():
    questions = [Question("q1", "B", "behavioral")]
    evaluations = [flat("zz", 100, technical=False), flat("q1", 20, technical=False), flat("q1", 70, technical=False)]
    result = aggregate(questions, [Answer("q1", "", skipped=True)], evaluations)
    assert result.overall_score == 70
    assert result.per_question[0].status == "skipped"
