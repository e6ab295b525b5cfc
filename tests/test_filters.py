"""Tests for ad hoc review filtering."""

from datetime import datetime, timezone

import pytest

from reviewinsight.core.exceptions import InputValidationError
from reviewinsight.core.filters import FilterCriteria, filter_reviews


@pytest.fixture
def reviews(make_classified):
    return [
        make_classified("a", "positive", 0.9, 5, title="Love it", keywords=["great"],
                        updated=datetime(2024, 5, 1, tzinfo=timezone.utc)),
        make_classified("b", "negative", 0.1, 1, content="login always fails", keywords=["error"],
                        updated=datetime(2024, 5, 10, tzinfo=timezone.utc)),
        make_classified("c", "neutral", 0.5, 3, content="it is fine",
                        updated=datetime(2024, 6, 1, tzinfo=timezone.utc)),
    ]


class TestFilterReviews:

    def test_default_criteria_keep_everything(self, reviews):
        result = filter_reviews(reviews)
        assert result.count == 3
        assert result.original_count == 3
        assert [r.id for r in result.reviews] == ["a", "b", "c"]

    def test_rating_filter(self, reviews):
        result = filter_reviews(reviews, FilterCriteria(ratings={5}))
        assert [r.id for r in result.reviews] == ["a"]

    def test_sentiment_filter(self, reviews):
        result = filter_reviews(reviews, FilterCriteria(sentiment="negative"))
        assert [r.id for r in result.reviews] == ["b"]

    def test_keyword_matches_keywords_title_and_content(self, reviews):
        assert [r.id for r in filter_reviews(reviews, FilterCriteria(keywords=["GREAT"])).reviews] == ["a"]
        assert [r.id for r in filter_reviews(reviews, FilterCriteria(keywords=["login"])).reviews] == ["b"]
        assert [r.id for r in filter_reviews(reviews, FilterCriteria(keywords=["love"])).reviews] == ["a"]

    def test_criteria_are_combined(self, reviews):
        result = filter_reviews(reviews, FilterCriteria(sentiment="negative", keywords=["great"]))
        assert result.count == 0
        assert result.original_count == 3

    def test_date_range_is_inclusive(self, reviews):
        criteria = FilterCriteria(start=datetime(2024, 5, 1, tzinfo=timezone.utc),
                                  end=datetime(2024, 5, 10, tzinfo=timezone.utc))
        assert [r.id for r in filter_reviews(reviews, criteria).reviews] == ["a", "b"]

    def test_naive_bounds_are_utc(self, reviews):
        criteria = FilterCriteria(start=datetime(2024, 5, 2), end=datetime(2024, 12, 31))
        assert [r.id for r in filter_reviews(reviews, criteria).reviews] == ["b", "c"]

    def test_one_sided_range_is_ignored(self, reviews):
        criteria = FilterCriteria(start=datetime(2030, 1, 1, tzinfo=timezone.utc))
        assert filter_reviews(reviews, criteria).count == 3

    def test_unknown_sentiment_rejected(self):
        with pytest.raises(InputValidationError):
            FilterCriteria(sentiment="angry")

    def test_result_to_dict(self, reviews):
        data = filter_reviews(reviews, FilterCriteria(ratings={1})).to_dict()
        assert data["count"] == 1
        assert data["originalCount"] == 3
        assert data["reviews"][0]["id"] == "b"
