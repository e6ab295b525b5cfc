"""Tests for the LLM service layer."""

import json
import time
from types import SimpleNamespace
from unittest.mock import Mock, patch

import openai
import pytest

from reviewinsight.core.exceptions import ClassificationError
from reviewinsight.services.llm import (
    FallbackLLMService, LLMServiceFactory, OpenAIService, SENTIMENT_SYSTEM_PROMPT, build_problem_prompt,
)


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestOpenAIService:

    def setup_method(self):
        self.client = Mock()
        self.service = OpenAIService(client=self.client, model="test-model", request_timeout=3)

    def test_classify_batch_sends_items(self):
        self.client.chat.completions.create.return_value = _completion(' [{"id": "1"}] ')
        text = self.service.classify_batch([{"id": "1", "title": "t", "content": "c", "rating": 5}])
        assert text == '[{"id": "1"}]'
        kwargs = self.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["timeout"] == 3
        assert kwargs["messages"][0]["content"] == SENTIMENT_SYSTEM_PROMPT
        assert '"id": "1"' in kwargs["messages"][1]["content"]

    def test_empty_reply_is_classification_error(self):
        self.client.chat.completions.create.return_value = _completion("   ")
        with pytest.raises(ClassificationError):
            self.service.refine_problems("prompt")

    def test_api_errors_are_wrapped(self):
        self.client.chat.completions.create.side_effect = openai.OpenAIError("bad key")
        with pytest.raises(ClassificationError, match="bad key"):
            self.service.chat("system", "user")

    def test_request_timeout_is_cut_to_deadline(self):
        self.client.chat.completions.create.return_value = _completion("[]")
        self.service.classify_batch([], deadline=time.monotonic() + 1.0)
        timeout = self.client.chat.completions.create.call_args.kwargs["timeout"]
        assert 0 < timeout <= 1.0

    def test_passed_deadline_sends_nothing(self):
        with pytest.raises(ClassificationError, match="Deadline passed"):
            self.service.classify_batch([], deadline=time.monotonic() - 1)
        self.client.chat.completions.create.assert_not_called()

    def test_refine_problems_defaults_to_problem_timeout(self):
        self.client.chat.completions.create.return_value = _completion("{}")
        with patch("reviewinsight.services.llm.settings") as settings:
            settings.problem_timeout = 2
            settings.max_retries = 3
            settings.retry_delay = 1.0
            settings.retry_backoff = 2.0
            self.service.refine_problems("prompt")
        timeout = self.client.chat.completions.create.call_args.kwargs["timeout"]
        assert 0 < timeout <= 2


class TestFallbackLLMService:

    def test_every_call_fails(self):
        service = FallbackLLMService()
        with pytest.raises(ClassificationError):
            service.classify_batch([])
        with pytest.raises(ClassificationError):
            service.refine_problems("prompt")


class TestLLMServiceFactory:

    def test_without_key_uses_fallback(self):
        with patch("reviewinsight.services.llm.settings") as settings:
            settings.effective_openai_key = ""
            assert isinstance(LLMServiceFactory.create(), FallbackLLMService)

    def test_with_key_uses_openai(self):
        with patch("reviewinsight.services.llm.settings") as settings, \
                patch("reviewinsight.services.llm.openai.OpenAI") as client_cls:
            settings.effective_openai_key = "sk-test"
            settings.openai_model = "gpt-4o-mini"
            settings.batch_timeout = 600
            service = LLMServiceFactory.create()
        assert isinstance(service, OpenAIService)
        client_cls.assert_called_once_with(api_key="sk-test")


def test_problem_prompt_embeds_issues_and_counts():
    prompt = build_problem_prompt(["クラッシュする"], ["crash"], 4, 10)
    assert "クラッシュする" in prompt
    assert json.dumps(["crash"]) in prompt
    assert "10" in prompt
