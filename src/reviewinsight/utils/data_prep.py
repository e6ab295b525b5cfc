"""Data preparation for export and re-import."""

import datetime
import json
from typing import Any, Dict, List, Optional

from ..core.constants import FileConstants
from ..core.exceptions import InputValidationError
from ..core.models import AnalysisReport, Classification, ClassifiedReview, ProblemAnalysisResult, Review


def _parse_time(value: Optional[str]) -> Optional[datetime.datetime]:
    if not value:
        return None
    return datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))


def prepare_export(report: AnalysisReport, problems: Optional[ProblemAnalysisResult] = None) -> Dict[str, Any]:
    """Prepare an analysis (and optional problem analysis) for JSON export."""
    export_data = report.to_dict()
    if problems is not None:
        export_data["problems"] = problems.to_dict()
    export_data["metadata"] = {
        "export_timestamp": None,  # Will be set by caller
        "version": FileConstants.EXPORT_VERSION,
    }
    return export_data


def export_to_json(data: Dict[str, Any], filename: str) -> None:
    """Export data to JSON file."""
    data.setdefault("metadata", {"version": FileConstants.EXPORT_VERSION})
    data["metadata"]["export_timestamp"] = datetime.datetime.now().isoformat()

    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def classified_review_from_dict(data: Dict[str, Any]) -> ClassifiedReview:
    """Rebuild a ClassifiedReview from its exported form."""
    try:
        analysis = data["analysis"]
        review = Review(
            id=str(data["id"]),
            title=data.get("title") or "",
            content=data.get("content") or "",
            rating=data.get("rating"),
            author=data.get("author") or "",
            version=data.get("version") or "",
            updated=_parse_time(data.get("updated")),
            fetched_at=_parse_time(data.get("createdAt")),
        )
        classification = Classification(
            sentiment=analysis["sentiment"],
            sentiment_score=float(analysis["sentimentScore"]),
            keywords=list(analysis.get("keywords") or []),
            topics=list(analysis.get("topics") or []),
            issues=list(analysis.get("issues") or []),
            praises=list(analysis.get("praises") or []),
            summary=analysis.get("summary") or "",
            used_fallback=bool(analysis.get("fallback", False)),
            error=analysis.get("error"),
            fallback_reason=analysis.get("fallbackReason"),
            analyzed_at=_parse_time(analysis.get("analyzedAt")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InputValidationError(f"Malformed analyzed review: {e}") from e
    return ClassifiedReview(review=review, analysis=classification)


def load_classified_reviews(filename: str) -> List[ClassifiedReview]:
    """Read the classified reviews back out of an exported analysis file."""
    with open(filename, 'r', encoding='utf-8') as f:
        data = json.load(f)
    items = data.get("reviews") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise InputValidationError(f"{filename} does not contain a list of analyzed reviews")
    return [classified_review_from_dict(item) for item in items]
