import json, time
from typing import Any, Dict, List, Optional

import structlog

from .config import Settings
from .evaluator import AnswerEvaluator
from .loaders import cached_evaluations, normalize_interview, relax_load_json
from .models import Evaluation
from .report import ReportGenerator

logger = structlog.get_logger(__name__)


def run_full_pass(in_path: str, out_path: str, settings: Optional[Settings] = None,
                  completer=None) -> Dict[str, Any]:
    settings = settings or Settings.from_env()
    data = relax_load_json(in_path)
    interview = normalize_interview(data)
    cached = cached_evaluations(data, interview)

    evaluator = AnswerEvaluator(settings, completer)
    generator = ReportGenerator(settings, evaluator.completer)
    t0 = time.time()

    todo = [(q, a) for q, a in interview.pairs() if q.id not in cached]
    fresh = {ev.question_id: ev for ev in evaluator.evaluate_all(todo, interview.job)}
    evaluations: List[Evaluation] = [cached.get(q.id) or fresh[q.id] for q in interview.questions]
    logger.info("Evaluated interview answers", interview_id=interview.id,
                total=len(evaluations), reused=len(cached))

    report = generator.generate(interview, evaluations)

    out = {
        "meta": {
            "model": settings.model,
            "offline_mode": settings.offline_mode,
            "elapsed_sec": round(time.time() - t0, 2),
            "evaluated_questions": sum(1 for ev in evaluations if ev.source != "fallback"),
            "total_questions": len(interview.questions),
        },
        "interview_id": interview.id,
        "evaluations": [ev.to_dict() for ev in evaluations],
        "report": report.to_dict(),
    }
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(out, f, indent=2, ensure_ascii=False)
    return out
