"""Tests for export, re-import and the offline CLI commands."""

import json
import sys

import pytest

from reviewinsight import cli
from reviewinsight.core.exceptions import InputValidationError
from reviewinsight.core.models import AnalysisReport, ClassifiedReview
from reviewinsight.core.sentiment import fallback_sentiment
from reviewinsight.core.statistics import generate_statistics
from reviewinsight.utils.data_prep import (
    classified_review_from_dict, export_to_json, load_classified_reviews, prepare_export,
)


@pytest.fixture
def export_file(tmp_path, mixed_reviews):
    classified = [ClassifiedReview(review=r, analysis=fallback_sentiment(r)) for r in mixed_reviews]
    report = AnalysisReport(app_id="123456", limit=10, reviews=classified,
                            statistics=generate_statistics(classified))
    path = tmp_path / "analysis.json"
    export_to_json(prepare_export(report), str(path))
    return path


class TestExport:

    def test_export_round_trip(self, export_file):
        data = json.loads(export_file.read_text(encoding="utf-8"))
        assert data["appId"] == "123456"
        assert data["metadata"]["export_timestamp"]
        reviews = load_classified_reviews(str(export_file))
        assert len(reviews) == 10
        assert reviews[-1].analysis.sentiment == "negative"
        assert reviews[-1].analysis.used_fallback is True
        assert reviews[0].review.updated is not None

    def test_malformed_review_rejected(self):
        with pytest.raises(InputValidationError):
            classified_review_from_dict({"id": "1", "analysis": {"sentiment": "positive"}})

    def test_non_list_file_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"reviews": "nope"}', encoding="utf-8")
        with pytest.raises(InputValidationError):
            load_classified_reviews(str(path))


class TestOfflineCommands:

    def _run(self, monkeypatch, *argv):
        monkeypatch.setattr(sys, "argv", ["reviewinsight", *argv])
        cli.main()

    def test_filter_command(self, monkeypatch, capsys, export_file, tmp_path):
        out = tmp_path / "filtered.json"
        self._run(monkeypatch, "filter", "--in", str(export_file), "--rating", "1", "--out", str(out))
        assert "4 of 10 reviews match" in capsys.readouterr().out
        assert json.loads(out.read_text(encoding="utf-8"))["count"] == 4

    def test_keywords_command(self, monkeypatch, capsys, export_file):
        self._run(monkeypatch, "keywords", "--in", str(export_file))
        assert "crash: 4" in capsys.readouterr().out

    def test_problems_command_without_llm(self, monkeypatch, capsys, export_file):
        monkeypatch.setattr(cli, "build_pipeline", lambda: _offline_pipeline())
        self._run(monkeypatch, "problems", "--in", str(export_file))
        output = capsys.readouterr().out
        assert "keyword fallback" in output
        assert "Bugs & Errors: 4" in output

    def test_missing_file_exits_with_error(self, monkeypatch, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            self._run(monkeypatch, "keywords", "--in", str(tmp_path / "missing.json"))
        assert excinfo.value.code == 1


def _offline_pipeline():
    from reviewinsight.services.llm import FallbackLLMService
    from reviewinsight.services.pipeline import ReviewAnalysisPipeline
    from reviewinsight.services.problem_analyzer import ProblemAnalyzer

    llm = FallbackLLMService()
    return ReviewAnalysisPipeline(source=None, llm_service=llm, problem_analyzer=ProblemAnalyzer(llm, timeout=1))
