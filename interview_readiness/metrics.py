from fractions import Fraction
from typing import Sequence

from .models import Answer, Metrics, Question
from .scoring import round_half_up


def word_count(text: str) -> int:
    return len(text.split())


def compute_metrics(questions: Sequence[Question], answers: Sequence[Answer]) -> Metrics:
    answered = [a for a in answers if a.is_answered]
    total_words = sum(word_count(a.transcript) for a in answered)
    avg = round_half_up(Fraction(total_words, len(answered))) if answered else 0
    return Metrics(
        average_answer_length=avg,
        questions_answered=len(answered),
        questions_skipped=sum(1 for a in answers if a.skipped),
        total_questions=len(questions),
    )
