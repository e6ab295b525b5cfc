"""Tests for statistics over classified reviews."""

from datetime import datetime, timezone

from reviewinsight.core.statistics import (
    detailed_statistics, generate_statistics, keyword_analysis, rating_correlation, time_series,
)


class TestGenerateStatistics:

    def test_counts_and_percentages(self, make_classified):
        reviews = (
            [make_classified(f"p{i}", "positive", 0.9, 5) for i in range(6)]
            + [make_classified(f"n{i}", "negative", 0.1, 1) for i in range(3)]
            + [make_classified("x", "neutral", 0.5, 3)]
        )
        stats = generate_statistics(reviews)
        assert (stats.total, stats.positive, stats.negative, stats.neutral) == (10, 6, 3, 1)
        assert stats.positive_percentage == "60.0"
        assert stats.negative_percentage == "30.0"
        assert stats.neutral_percentage == "10.0"
        assert stats.average_rating == 3.6
        assert stats.average_sentiment_score == 0.62

    def test_percentages_sum_to_about_100(self, make_classified):
        reviews = [make_classified(f"r{i}", s) for i, s in enumerate(["positive", "negative", "neutral"])]
        stats = generate_statistics(reviews)
        total = sum(float(p) for p in (stats.positive_percentage, stats.negative_percentage,
                                       stats.neutral_percentage))
        assert abs(total - 100.0) <= 0.2

    def test_empty_collection(self):
        stats = generate_statistics([])
        assert stats.total == 0
        assert stats.positive_percentage == "0.0"
        assert stats.negative_percentage == "0.0"
        assert stats.neutral_percentage == "0.0"
        assert stats.average_sentiment_score == 0.0

    def test_keyword_and_topic_frequency(self, make_classified):
        reviews = [
            make_classified("a", keywords=["crash", "login"], topics=["login"]),
            make_classified("b", keywords=["crash"], topics=["sync"]),
        ]
        stats = generate_statistics(reviews)
        assert stats.keyword_frequency == {"crash": 2, "login": 1}
        assert stats.topic_frequency == {"login": 1, "sync": 1}

    def test_to_dict_nests_distribution(self, make_classified):
        data = generate_statistics([make_classified("a", "positive", 0.9, 5)]).to_dict()
        assert data["sentimentDistribution"]["positivePercentage"] == "100.0"


class TestExtendedStatistics:

    def test_time_series_groups_by_day(self, make_classified):
        day1 = datetime(2024, 5, 1, 9, tzinfo=timezone.utc)
        day2 = datetime(2024, 5, 2, 9, tzinfo=timezone.utc)
        reviews = [
            make_classified("a", "positive", 0.9, 5, updated=day2),
            make_classified("b", "negative", 0.1, 1, updated=day1),
            make_classified("c", "positive", 0.7, 4, updated=day1),
        ]
        series = time_series(reviews)
        assert [d["date"] for d in series] == ["2024-05-01", "2024-05-02"]
        assert series[0]["positive"] == 1
        assert series[0]["negative"] == 1
        assert series[0]["averageRating"] == 2.5

    def test_rating_correlation(self, make_classified):
        reviews = [
            make_classified("a", "positive", 0.9, 5),
            make_classified("b", "positive", 0.7, 5),
            make_classified("c", "negative", 0.1, 1),
        ]
        correlation = rating_correlation(reviews)
        assert len(correlation["scatterData"]) == 3
        assert correlation["ratingAnalysis"] == [
            {"rating": 1, "averageSentimentScore": 0.1, "count": 1},
            {"rating": 5, "averageSentimentScore": 0.8, "count": 2},
        ]

    def test_keyword_analysis_respects_min_frequency(self, make_classified):
        reviews = [
            make_classified("a", "negative", 0.1, keywords=["crash", "login"]),
            make_classified("b", "negative", 0.3, keywords=["crash"]),
            make_classified("c", "positive", 0.9, keywords=["crash"]),
        ]
        analysis = keyword_analysis(reviews, min_frequency=2)
        assert [k["keyword"] for k in analysis["keywords"]] == ["crash"]
        crash = analysis["keywords"][0]
        assert crash["frequency"] == 3
        assert crash["sentiments"] == {"positive": 1, "negative": 2, "neutral": 0}
        assert crash["avgSentimentScore"] == 0.433
        assert analysis["totalUniqueKeywords"] == 2

    def test_detailed_statistics_includes_extras(self, make_classified):
        data = detailed_statistics([make_classified("a", "positive", 0.9, 5)])
        assert "timeSeries" in data
        assert "correlation" in data
        assert data["total"] == 1
