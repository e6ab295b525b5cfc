"""Decoding and validation of structured replies from the classification service.

Every decode either returns well-typed data or raises ResponseParseError.
Individual fields that fail validation are coerced to defaults instead of
being passed through as None.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import AnalysisConstants
from .exceptions import ResponseParseError
from .models import ProblemCategory, ProblemAnalysisResult, Solution

_FENCE_RE = re.compile(r"^```(?:json)?|```$", re.IGNORECASE | re.MULTILINE)
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

DEFAULT_AI_SUMMARY = "Analysis of negative reviews completed."
DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_SOLUTION = "Solution under consideration"


def _strip_code_fences(s: str) -> str:
    return _FENCE_RE.sub("", s.strip()).strip()


def _extract(text: Any, pattern: "re.Pattern", kind: type, what: str):
    if not isinstance(text, str) or not text.strip():
        raise ResponseParseError(f"Empty response, expected a JSON {what}")
    cleaned = _strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except ValueError:
        match = pattern.search(cleaned)
        if not match:
            raise ResponseParseError(f"No JSON {what} found in response")
        try:
            data = json.loads(match.group(0))
        except ValueError as e:
            raise ResponseParseError(f"Invalid JSON {what}: {e}") from e
    if not isinstance(data, kind):
        raise ResponseParseError(f"Expected a JSON {what}, got {type(data).__name__}")
    return data


def extract_json_array(text: str) -> List[Any]:
    return _extract(text, _ARRAY_RE, list, "array")


def extract_json_object(text: str) -> Dict[str, Any]:
    return _extract(text, _OBJECT_RE, dict, "object")


def _str_list(value: Any, limit: Optional[int] = None) -> List[str]:
    if not isinstance(value, list):
        return []
    items = [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]
    return items[:limit] if limit is not None else items


def _choice(value: Any, allowed, default: str, aliases: Optional[Dict[str, str]] = None) -> str:
    if isinstance(value, str):
        v = value.strip()
        if aliases and v in aliases:
            return aliases[v]
        if v.lower() in allowed:
            return v.lower()
    return default


@dataclass
class ParsedClassification:
    """Validated fields of one entry from a batch reply."""
    sentiment: Optional[str]  # None when the label was missing or invalid
    sentiment_score: Optional[float]
    keywords: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    praises: List[str] = field(default_factory=list)
    summary: str = ""

    @property
    def label_valid(self) -> bool:
        return self.sentiment is not None


def parse_batch_response(text: str) -> Dict[str, Dict[str, Any]]:
    """Decode a batch reply into {review id: raw entry}."""
    entries = extract_json_array(text)
    by_id = {}
    for entry in entries:
        if isinstance(entry, dict) and entry.get("id") is not None:
            by_id.setdefault(str(entry["id"]), entry)
    return by_id


def coerce_classification(entry: Dict[str, Any]) -> ParsedClassification:
    sentiment = entry.get("sentiment")
    if not isinstance(sentiment, str) or sentiment.strip().lower() not in AnalysisConstants.SENTIMENTS:
        sentiment = None
    else:
        sentiment = sentiment.strip().lower()

    score = entry.get("sentimentScore", entry.get("sentiment_score"))
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        score = None
    else:
        score = round(min(1.0, max(0.0, float(score))), 3)

    summary = entry.get("summary")
    return ParsedClassification(
        sentiment=sentiment,
        sentiment_score=score,
        keywords=_str_list(entry.get("keywords"), AnalysisConstants.MAX_KEYWORDS),
        topics=_str_list(entry.get("topics"), AnalysisConstants.MAX_TOPICS),
        issues=_str_list(entry.get("issues")),
        praises=_str_list(entry.get("praises")),
        summary=summary.strip() if isinstance(summary, str) else "",
    )


def _coerce_solution(raw: Any) -> Solution:
    raw = raw if isinstance(raw, dict) else {}
    description = raw.get("solution") or raw.get("description")
    return Solution(
        description=str(description) if description else DEFAULT_SOLUTION,
        effort=_choice(raw.get("effort"), AnalysisConstants.LEVELS, "medium"),
        impact=_choice(raw.get("impact"), AnalysisConstants.LEVELS, "medium"),
        timeline=_choice(raw.get("timeline"), AnalysisConstants.TIMELINES, "medium",
                         AnalysisConstants.TIMELINE_ALIASES),
    )


def _coerce_category(raw: Any) -> ProblemCategory:
    raw = raw if isinstance(raw, dict) else {}
    name = raw.get("category") or raw.get("name")
    frequency = raw.get("frequency")
    if isinstance(frequency, bool) or not isinstance(frequency, (int, float)):
        frequency = 1
    solutions = raw.get("solutions")
    description = raw.get("description")
    return ProblemCategory(
        name=str(name) if name else DEFAULT_CATEGORY,
        description=str(description) if isinstance(description, str) else "",
        issues=_str_list(raw.get("issues")),
        frequency=max(0, int(frequency)),
        priority=_choice(raw.get("priority"), AnalysisConstants.LEVELS, "medium"),
        solutions=[_coerce_solution(s) for s in solutions] if isinstance(solutions, list) else [],
    )


def coerce_problem_analysis(data: Dict[str, Any]) -> ProblemAnalysisResult:
    """Turn a decoded problem-analysis object into a result, coercing bad fields."""
    if not isinstance(data, dict):
        raise ResponseParseError(f"Expected a JSON object, got {type(data).__name__}")
    categories = data.get("problemCategories")
    summary = data.get("overallSummary")
    return ProblemAnalysisResult(
        problem_categories=[_coerce_category(c) for c in categories] if isinstance(categories, list) else [],
        overall_summary=summary if isinstance(summary, str) and summary.strip() else DEFAULT_AI_SUMMARY,
        quick_wins=_str_list(data.get("quickWins")),
        long_term_goals=_str_list(data.get("longTermGoals")),
    )
