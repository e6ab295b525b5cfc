"""Statistics over classified reviews."""

from collections import Counter, defaultdict
from datetime import timezone
from typing import Any, Dict, List, Sequence

from .constants import AnalysisConstants
from .models import ClassifiedReview, ReviewStatistics, utcnow


def _percentage(count: int, total: int) -> str:
    if total == 0:
        return "0.0"
    return f"{count / total * 100:.1f}"


def generate_statistics(reviews: Sequence[ClassifiedReview]) -> ReviewStatistics:
    """Label distribution, mean score and rating, keyword and topic frequencies.

    An empty collection yields zero counts and "0.0" percentages.
    """
    total = len(reviews)
    counts = Counter(r.analysis.sentiment for r in reviews)
    keyword_frequency = Counter(k for r in reviews for k in r.analysis.keywords)
    topic_frequency = Counter(t for r in reviews for t in r.analysis.topics)

    if total:
        average_score = sum(r.analysis.sentiment_score for r in reviews) / total
        average_rating = sum(r.rating or 0 for r in reviews) / total
    else:
        average_score = average_rating = 0.0

    return ReviewStatistics(
        total=total,
        positive=counts["positive"],
        negative=counts["negative"],
        neutral=counts["neutral"],
        positive_percentage=_percentage(counts["positive"], total),
        negative_percentage=_percentage(counts["negative"], total),
        neutral_percentage=_percentage(counts["neutral"], total),
        average_sentiment_score=round(average_score, 3),
        average_rating=round(average_rating, 2),
        keyword_frequency=dict(keyword_frequency),
        topic_frequency=dict(topic_frequency),
        generated_at=utcnow(),
    )


def time_series(reviews: Sequence[ClassifiedReview]) -> List[Dict[str, Any]]:
    """Per-day label counts and averages, keyed by the UTC date of the review update."""
    days: Dict[str, Dict[str, Any]] = {}
    for r in reviews:
        if r.review.updated is None:
            continue
        updated = r.review.updated
        if updated.tzinfo is not None:
            updated = updated.astimezone(timezone.utc)
        date = updated.date().isoformat()
        day = days.setdefault(date, {
            "date": date, "positive": 0, "negative": 0, "neutral": 0,
            "totalSentimentScore": 0.0, "totalRating": 0, "count": 0,
        })
        day[r.analysis.sentiment] += 1
        day["totalSentimentScore"] += r.analysis.sentiment_score
        day["totalRating"] += r.rating or 0
        day["count"] += 1

    series = []
    for date in sorted(days):
        day = days[date]
        day["averageSentimentScore"] = round(day["totalSentimentScore"] / day["count"], 3)
        day["averageRating"] = round(day["totalRating"] / day["count"], 2)
        series.append(day)
    return series


def rating_correlation(reviews: Sequence[ClassifiedReview]) -> Dict[str, Any]:
    """Scatter of rating vs. sentiment score plus the mean score per rating."""
    scatter = [
        {"rating": r.rating or 0, "sentimentScore": r.analysis.sentiment_score, "sentiment": r.analysis.sentiment}
        for r in reviews
    ]
    groups = defaultdict(list)
    for point in scatter:
        groups[point["rating"]].append(point["sentimentScore"])
    rating_analysis = [
        {"rating": rating, "averageSentimentScore": round(sum(scores) / len(scores), 3), "count": len(scores)}
        for rating, scores in sorted(groups.items())
    ]
    return {"scatterData": scatter, "ratingAnalysis": rating_analysis}


def keyword_analysis(reviews: Sequence[ClassifiedReview],
                     min_frequency: int = AnalysisConstants.DEFAULT_MIN_FREQUENCY) -> Dict[str, Any]:
    """Per-keyword and per-topic frequency broken down by sentiment."""
    keyword_stats: Dict[str, Dict[str, Any]] = {}
    topic_stats: Dict[str, Dict[str, Any]] = {}

    for r in reviews:
        sentiment = r.analysis.sentiment
        for keyword in r.analysis.keywords:
            stat = keyword_stats.setdefault(keyword, {
                "keyword": keyword, "frequency": 0,
                "sentiments": {"positive": 0, "negative": 0, "neutral": 0},
                "totalSentimentScore": 0.0,
            })
            stat["frequency"] += 1
            stat["sentiments"][sentiment] += 1
            stat["totalSentimentScore"] += r.analysis.sentiment_score
        for topic in r.analysis.topics:
            stat = topic_stats.setdefault(topic, {
                "topic": topic, "frequency": 0,
                "sentiments": {"positive": 0, "negative": 0, "neutral": 0},
            })
            stat["frequency"] += 1
            stat["sentiments"][sentiment] += 1

    for stat in keyword_stats.values():
        stat["avgSentimentScore"] = round(stat.pop("totalSentimentScore") / stat["frequency"], 3)

    def _frequent(stats):
        kept = [s for s in stats.values() if s["frequency"] >= min_frequency]
        return sorted(kept, key=lambda s: s["frequency"], reverse=True)

    return {
        "keywords": _frequent(keyword_stats),
        "topics": _frequent(topic_stats),
        "totalUniqueKeywords": len(keyword_stats),
        "totalUniqueTopics": len(topic_stats),
    }


def detailed_statistics(reviews: Sequence[ClassifiedReview]) -> Dict[str, Any]:
    data = generate_statistics(reviews).to_dict()
    data["timeSeries"] = time_series(reviews)
    data["correlation"] = rating_correlation(reviews)
    return data
