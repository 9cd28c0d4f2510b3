TECHNICAL = "technical"
BEHAVIORAL = "behavioral"
QUESTION_TYPES = (TECHNICAL, BEHAVIORAL)

# Weights are integer percentages so per-question scores can be computed exactly.
TECH_RUBRIC = {
    "rubric_name": "Technical Answer Rubric v2.0",
    "criteria": {
        "technicalAccuracy": {"weight": 35, "description": "Correctness of facts, code and concepts"},
        "depthScore":        {"weight": 25, "description": "Trade-offs, alternatives, specifics"},
        "relevanceScore":    {"weight": 20, "description": "Addresses the question that was asked"},
        "clarityScore":      {"weight": 20, "description": "Organization and clarity"},
    },
}

BEHAVIORAL_RUBRIC = {
    "rubric_name": "Behavioral Answer Rubric v2.0",
    "criteria": {
        "relevanceScore": {"weight": 40, "description": "Concrete example that answers the prompt"},
        "clarityScore":   {"weight": 30, "description": "STAR structure, clear and concise"},
        "depthScore":     {"weight": 30, "description": "Actions, outcomes and reflection"},
    },
}

SCORING_BANDS = {
    "relevanceScore": [
        (90, 100, "directly and completely answers the question"),
        (70, 89, "answers the question with minor drift"),
        (40, 69, "partially on topic, key parts of the question ignored"),
        (0, 39, "off topic or does not attempt the question"),
    ],
    "clarityScore": [
        (90, 100, "well structured, easy to follow, precise wording"),
        (70, 89, "mostly clear with some rambling"),
        (40, 69, "hard to follow, weak structure"),
        (0, 39, "incoherent or fragmentary"),
    ],
    "depthScore": [
        (90, 100, "specific examples, trade-offs and measurable outcomes"),
        (70, 89, "some specifics, limited trade-offs"),
        (40, 69, "generic statements with little detail"),
        (0, 39, "no substance"),
    ],
    "technicalAccuracy": [
        (90, 100, "correct and precise, no misconceptions"),
        (70, 89, "mostly correct with small inaccuracies"),
        (40, 69, "notable errors or gaps"),
        (0, 39, "largely incorrect"),
    ],
}

SKIP_SENTINELS = {"[skipped]", "[not answered]", "skipped", "not answered"}

NON_ANSWER_PHRASES = {
    "idk", "i dont know", "i don't know", "i do not know", "dont know", "don't know",
    "no idea", "not sure", "dunno", "n/a", "na", "none", "nothing", "no", "nope",
    "skip", "pass", "next", "no comment", "no answer", "nah", "whatever",
}
NON_ANSWER_MAX_CHARS = 3

HOSTILE_TOKENS = (
    "fuck", "shit", "bullshit", "asshole", "screw you", "shut up", "idiot",
    "stupid question", "dumb question", "waste of time", "none of your business",
)

SHORT_ANSWER_WORDS = 8
SHORT_ANSWER_CAPS = {"relevanceScore": 40, "depthScore": 35, "technicalAccuracy": 50}

READY = "Ready"
ALMOST_READY = "Almost Ready"
NEEDS_WORK = "Needs Work"
# (minimum overall score, band), checked top-down
READINESS_BANDS = ((80, READY), (60, ALMOST_READY), (0, NEEDS_WORK))

SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}
MIN_BLOCKERS = 3
MAX_BLOCKERS = 5
MAX_LIST_ITEMS = 8

# (issue, impact) variants per question type, most important first
BLOCKER_TEMPLATES = {
    TECHNICAL: [
        ("Technical explanation lacks depth and precision",
         "High impact on readiness - technical questions carry the most weight for this role"),
        ("Answer does not walk through trade-offs or alternatives",
         "High impact on readiness - interviewers probe reasoning, not just conclusions"),
        ("Missing concrete examples or measurable results",
         "Moderate impact on readiness - unsupported claims read as shallow experience"),
    ],
    BEHAVIORAL: [
        ("Response lacks a specific example with a clear outcome",
         "Moderate impact on readiness - behavioral answers need evidence of past behavior"),
        ("Answer is not structured around situation, task, action and result",
         "Moderate impact on readiness - unstructured stories are hard for interviewers to score"),
        ("Personal contribution and lessons learned are unclear",
         "Moderate impact on readiness - interviewers look for ownership and reflection"),
    ],
}
SKIPPED_ISSUE = "Question was skipped"
MISSING_ISSUE = "Question was not answered"
BLOCKER_SUGGESTIONS = {
    TECHNICAL: "Practice explaining the concept end to end with a concrete example and its trade-offs.",
    BEHAVIORAL: "Prepare a STAR story for this theme and rehearse it out loud.",
}
