"""Shared fixtures for ReviewInsight tests."""

from datetime import datetime, timezone

import pytest

from reviewinsight.core.models import Classification, ClassifiedReview, Review


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_review(review_id="r1", title="", content="", rating=None, updated=None):
    return Review(
        id=review_id,
        title=title,
        content=content,
        rating=rating,
        author="tester",
        version="1.0",
        updated=updated or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


def build_classified(review_id="r1", sentiment="neutral", score=0.5, rating=3, title="", content="",
                     keywords=None, topics=None, issues=None, updated=None, used_fallback=False):
    return ClassifiedReview(
        review=build_review(review_id, title, content, rating, updated),
        analysis=Classification(
            sentiment=sentiment,
            sentiment_score=score,
            keywords=list(keywords or []),
            topics=list(topics or []),
            issues=list(issues or []),
            summary="",
            used_fallback=used_fallback,
        ),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_review():
    return build_review


@pytest.fixture
def make_classified():
    return build_classified


@pytest.fixture
def mixed_reviews():
    """6 five-star reviews and 4 one-star crash reports."""
    positives = [
        build_review(f"p{i}", "Great app", "I use it every day, works well", 5) for i in range(6)
    ]
    negatives = [
        build_review(f"n{i}", "Keeps failing", "The app will crash every time I open it", 1) for i in range(4)
    ]
    return positives + negatives
