"""Tests for decoding structured service replies."""

import pytest

from reviewinsight.core.exceptions import ResponseParseError
from reviewinsight.core.schema import (
    DEFAULT_AI_SUMMARY, DEFAULT_CATEGORY, coerce_classification, coerce_problem_analysis,
    extract_json_array, extract_json_object, parse_batch_response,
)


class TestExtraction:

    def test_plain_array(self):
        assert extract_json_array('[{"id": "1"}]') == [{"id": "1"}]

    def test_fenced_array(self):
        assert extract_json_array('```json\n[{"id": "1"}]\n```') == [{"id": "1"}]

    def test_array_inside_prose(self):
        assert extract_json_array('Here you go:\n[1, 2]\nThanks') == [1, 2]

    def test_object_inside_prose(self):
        assert extract_json_object('Result: {"a": 1} done') == {"a": 1}

    @pytest.mark.parametrize("text", ["", "   ", None, "no json here", "[1, 2"])
    def test_unusable_text_raises(self, text):
        with pytest.raises(ResponseParseError):
            extract_json_array(text)

    def test_wrong_type_raises(self):
        with pytest.raises(ResponseParseError):
            extract_json_object("[1, 2]")


class TestClassificationCoercion:

    def test_batch_response_keys_by_id(self):
        by_id = parse_batch_response('[{"id": 1, "sentiment": "positive"}, {"sentiment": "negative"}, "x"]')
        assert list(by_id) == ["1"]

    def test_valid_entry(self):
        parsed = coerce_classification({
            "id": "1", "sentiment": "Positive", "sentimentScore": 0.87654,
            "keywords": ["a", "", 3, None], "topics": ["t"], "issues": [], "praises": ["p"],
            "summary": " short ",
        })
        assert parsed.label_valid
        assert parsed.sentiment == "positive"
        assert parsed.sentiment_score == 0.877
        assert parsed.keywords == ["a", "3"]
        assert parsed.summary == "short"

    def test_invalid_label_and_score(self):
        parsed = coerce_classification({"sentiment": "mixed", "sentimentScore": "high", "keywords": "a"})
        assert not parsed.label_valid
        assert parsed.sentiment_score is None
        assert parsed.keywords == []

    def test_score_is_clamped(self):
        assert coerce_classification({"sentiment": "negative", "sentimentScore": -2}).sentiment_score == 0.0
        assert coerce_classification({"sentiment": "positive", "sentimentScore": 7}).sentiment_score == 1.0

    def test_list_limits(self):
        parsed = coerce_classification({"sentiment": "neutral", "keywords": list("abcdefghij"),
                                        "topics": list("abcdefg")})
        assert len(parsed.keywords) == 8
        assert len(parsed.topics) == 5


class TestProblemCoercion:

    def test_defaults_for_missing_fields(self):
        result = coerce_problem_analysis({"problemCategories": [{"solutions": [{}]}, "junk"]})
        first = result.problem_categories[0]
        assert first.name == DEFAULT_CATEGORY
        assert first.frequency == 1
        assert first.priority == "medium"
        assert first.solutions[0].effort == "medium"
        assert first.solutions[0].timeline == "medium"
        assert result.overall_summary == DEFAULT_AI_SUMMARY
        assert result.quick_wins == []

    def test_values_are_normalized(self):
        result = coerce_problem_analysis({
            "problemCategories": [{
                "category": "Login", "issues": ["cannot log in"], "frequency": 3, "priority": "HIGH",
                "solutions": [{"solution": "Fix SSO", "effort": "low", "impact": "high", "timeline": "短期"}],
            }],
            "overallSummary": "Login is broken.",
            "quickWins": ["Fix SSO"],
            "longTermGoals": ["Rewrite auth"],
        })
        category = result.problem_categories[0]
        assert category.name == "Login"
        assert category.priority == "high"
        assert category.solutions[0].timeline == "short"
        assert category.solutions[0].description == "Fix SSO"
        assert result.quick_wins == ["Fix SSO"]

    def test_invalid_priority_becomes_medium(self):
        result = coerce_problem_analysis({"problemCategories": [{"category": "X", "priority": "urgent"}]})
        assert result.problem_categories[0].priority == "medium"

    def test_non_object_rejected(self):
        with pytest.raises(ResponseParseError):
            coerce_problem_analysis(["not", "an", "object"])
