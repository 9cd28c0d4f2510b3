import json, math, re
from typing import Any, Dict, List, Optional

import structlog

from .models import Answer, Evaluation, Interview, JobContext, Question

logger = structlog.get_logger(__name__)

_FENCE_RE = re.compile(r"^```(?:json|JSON)?\s*\n?|\n?```\s*$")
_TRAILING_COMMA_RE = re.compile(r",\s*([\]\}])")


def _relax(txt: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", txt)


def relax_load_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        txt = f.read()
    return json.loads(_relax(txt))


def _loads_object(txt: str) -> Optional[Dict[str, Any]]:
    for candidate in (txt, _relax(txt)):
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        return data if isinstance(data, dict) else None
    return None


def extract_json_object(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Pull a JSON object out of a model response.

    Tolerates markdown code fences and prose around the object. Returns None
    when nothing parses to a dict.
    """
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = _FENCE_RE.sub("", raw.strip()).strip()
    data = _loads_object(text)
    if data is not None:
        return data
    s, e = text.find("{"), text.rfind("}")
    if s != -1 and e > s:
        return _loads_object(text[s:e + 1])
    return None


def normalize_interview(data: dict) -> Interview:
    if "questions" not in data or not isinstance(data["questions"], list):
        raise ValueError("Top-level 'questions' list not found.")
    questions: List[Question] = []
    answers: List[Answer] = []
    for i, d in enumerate(data["questions"], 1):
        if not isinstance(d, dict):
            raise ValueError(f"Question #{i} is not an object.")
        q = Question.from_dict(d, index=i)
        questions.append(q)
        # session files may carry the answer inline with the question
        if "answer" in d:
            ans = d.get("answer")
            answers.append(Answer(question_id=q.id, transcript=str(ans or ""), skipped=ans is None))
    for d in data.get("answers") or []:
        answers.append(Answer.from_dict(d))
    job = data.get("job")
    return Interview(
        questions,
        answers,
        interview_id=str(data.get("id", "")),
        job=JobContext.from_dict(job) if isinstance(job, dict) else None,
    )


def load_interview(path: str) -> Interview:
    return normalize_interview(relax_load_json(path))


def cached_evaluations(data: dict, interview: Interview) -> Dict[str, Evaluation]:
    """Evaluations stored alongside an interview, keyed by question id."""
    out: Dict[str, Evaluation] = {}
    for d in data.get("evaluations") or []:
        ev = Evaluation.from_dict(d)
        if interview.question(ev.question_id) is None:
            logger.warning("Ignoring cached evaluation for unknown question", question_id=ev.question_id)
            continue
        out[ev.question_id] = ev
    return out


def as_number(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    if isinstance(v, str):
        try:
            v = float(v.strip())
        except ValueError:
            return None
    if not isinstance(v, (int, float)):
        return None
    # ints too large for a float overflow here
    try:
        finite = math.isfinite(float(v))
    except (OverflowError, TypeError, ValueError):
        return None
    return v if finite else None


def as_str_list(v: Any) -> List[str]:
    if not isinstance(v, list):
        return []
    return [str(x).strip() for x in v if isinstance(x, (str, int, float)) and str(x).strip()]
