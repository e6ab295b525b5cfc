"""Keyword-based problem clustering.

This is the baseline the problem analyzer serves whenever the AI refinement
is unavailable, so it must always succeed for a non-empty input.
"""

import logging
from typing import List, Optional, Sequence

from .constants import AnalysisConstants
from .lexicon import Lexicon, CategoryDefinition, contains_term, default_lexicon
from .models import ClassifiedReview, ProblemAnalysisResult, ProblemCategory, utcnow

logger = logging.getLogger(__name__)

BASELINE_REASON = "AI analysis unavailable, keyword-based problem analysis used"
FALLBACK_CATEGORY = "User Experience"

NO_PROBLEMS_SUMMARY = "No negative reviews were found. The app is well received."
NO_PROBLEMS_QUICK_WINS = ["Maintain the current quality", "Keep monitoring user feedback"]
NO_PROBLEMS_GOALS = ["Further feature improvements", "Optimize the user experience"]

STANDARD_QUICK_WINS = [
    "Strengthen user support",
    "Reply actively to store reviews",
    "Expand the FAQ and help documentation",
    "Improve the feedback collection flow",
    "Announce improvements through in-app notifications",
]

STANDARD_GOALS = [
    "Establish a user-centered development process",
    "Build data-driven decision making",
    "Differentiate based on competitive analysis",
    "Grow and engage a user community",
]

_DEFAULT_LEXICON = default_lexicon()


def negative_reviews(reviews: Sequence[ClassifiedReview]) -> List[ClassifiedReview]:
    return [r for r in reviews if r.analysis.sentiment == "negative"]


def no_problems_result(total_reviews: int) -> ProblemAnalysisResult:
    """Fixed positive-outlook result for collections without negative reviews."""
    return ProblemAnalysisResult(
        problem_categories=[],
        overall_summary=NO_PROBLEMS_SUMMARY,
        quick_wins=list(NO_PROBLEMS_QUICK_WINS),
        long_term_goals=list(NO_PROBLEMS_GOALS),
        total_reviews=total_reviews,
        total_negative_reviews=0,
        used_fallback=False,
        analyzed_at=utcnow(),
    )


def _match_category(definition: CategoryDefinition, negatives: Sequence[ClassifiedReview],
                    all_issues: List[str], all_keywords: List[str],
                    lexicon: Lexicon) -> Optional[ProblemCategory]:
    category_terms = [k.lower() for k in definition.keywords]
    matched_keywords = [k for k in all_keywords if any(t in k.lower() for t in category_terms)]
    related = [r for r in negatives if any(contains_term(r.review.text.lower(), t) for t in category_terms)]
    frequency = max(len(matched_keywords), len(related))
    if frequency == 0:
        return None

    issues = [i for i in all_issues if any(m in i.lower() for m in definition.issue_markers)]
    if not issues:
        issues = [f"{definition.name} problems reported in {frequency} reviews"]
    return ProblemCategory(
        name=definition.name,
        description=definition.description,
        issues=list(dict.fromkeys(issues)),
        frequency=frequency,
        priority=definition.priority,
        solutions=lexicon.solutions_for(definition.name),
        affected_reviews=len(related),
    )


def _overall_summary(total: int, negatives: int, positives: int, average_rating: float,
                     categories: List[ProblemCategory]) -> str:
    negative_pct = negatives / total * 100
    positive_pct = positives / total * 100
    top = sorted(categories, key=lambda c: c.frequency, reverse=True)[:AnalysisConstants.MAX_TOP_CATEGORIES]
    return (
        f"Analyzed {total} reviews and found {negatives} negative reviews ({negative_pct:.1f}%). "
        f"The main problem areas are {', '.join(c.name for c in top)}. "
        f"The average rating is {average_rating:.1f} and positive reviews make up {positive_pct:.1f}%."
    )


def _quick_wins(categories: List[ProblemCategory]) -> List[str]:
    high = [c.name for c in categories if c.priority == "high"]
    wins = []
    if high:
        wins.append(f"Address high-priority problems immediately ({', '.join(high)})")
    return wins + STANDARD_QUICK_WINS


def _long_term_goals(categories: List[ProblemCategory]) -> List[str]:
    names = {c.name for c in categories}
    goals = []
    if names & {"Bugs & Errors", "Stability"}:
        goals.append("Fundamentally strengthen the quality assurance process")
    if "Performance" in names:
        goals.append("Continuously optimize performance")
    if "UI/UX" in names:
        goals.append("Overhaul the user interface")
    return goals + STANDARD_GOALS


def baseline_problem_analysis(reviews: Sequence[ClassifiedReview], lexicon: Optional[Lexicon] = None,
                              reason: str = "") -> ProblemAnalysisResult:
    """Cluster negative feedback with the canonical category definitions."""
    lexicon = lexicon or _DEFAULT_LEXICON
    total = len(reviews)
    negatives = negative_reviews(reviews)
    if not negatives:
        return no_problems_result(total)

    positives = sum(1 for r in reviews if r.analysis.sentiment == "positive")
    all_issues = [i for r in negatives for i in r.analysis.issues]
    all_keywords = [k for r in negatives for k in r.analysis.keywords]
    logger.info(f"Generating baseline problem analysis for {total} reviews ({len(negatives)} negative)")

    categories = []
    for definition in lexicon.categories:
        category = _match_category(definition, negatives, all_issues, all_keywords, lexicon)
        if category is not None:
            categories.append(category)

    if not categories:
        categories.append(ProblemCategory(
            name=FALLBACK_CATEGORY,
            description="General user satisfaction problems",
            issues=["User satisfaction needs to improve"],
            frequency=len(negatives),
            priority="medium",
            solutions=lexicon.solutions_for(FALLBACK_CATEGORY),
            affected_reviews=len(negatives),
        ))

    average_rating = sum(r.rating or 0 for r in reviews) / total
    categories.sort(key=lambda c: c.frequency, reverse=True)
    return ProblemAnalysisResult(
        problem_categories=categories,
        overall_summary=_overall_summary(total, len(negatives), positives, average_rating, categories),
        quick_wins=_quick_wins(categories),
        long_term_goals=_long_term_goals(categories),
        total_reviews=total,
        total_negative_reviews=len(negatives),
        used_fallback=True,
        fallback_reason=BASELINE_REASON,
        error=reason,
        analyzed_at=utcnow(),
    )
