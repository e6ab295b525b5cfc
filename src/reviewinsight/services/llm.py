"""LLM service for OpenAI integration.

The pipeline only needs two calls from the external classifier:
`classify_batch` (sentiment for a batch of reviews) and `refine_problems`
(problem clustering). Both return raw text; decoding happens in
`core.schema` so that parse failures are handled like call failures.
"""

import json
import logging
import time
from textwrap import dedent
from typing import Any, Dict, List, Optional

import openai
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, stop_after_delay, wait_exponential

from ..core.config import settings
from ..core.constants import AnalysisConstants
from ..core.exceptions import ClassificationError

logger = logging.getLogger(__name__)

SENTIMENT_SYSTEM_PROMPT = "You are an expert at analyzing App Store reviews. You output strict JSON only."

SENTIMENT_PROMPT = dedent("""
Analyze the following App Store reviews in detail. Judge each review's sentiment from
both its star rating and its text, and answer with a JSON array in the format below.

Review data:
{reviews}

Return a JSON array, one object per review:
[
  {{
    "id": "review id",
    "sentiment": "positive" | "negative" | "neutral",
    "sentimentScore": number from 0.0 to 1.0 (1.0 = most positive),
    "keywords": ["keyword1", "keyword2"],
    "topics": ["topic1", "topic2"],
    "issues": ["issue1", "issue2"],
    "praises": ["praise1", "praise2"],
    "summary": "summary of the review (50 characters max)"
  }}
]

Sentiment criteria:
- positive: 4-5 stars with favorable text ("great", "satisfied", "useful").
- negative: 1-2 stars with unfavorable text ("bad", "unusable", "bug").
- neutral: 3 stars, or text that is neither.

sentimentScore criteria:
- 1 star: 0.0-0.2, 2 stars: 0.2-0.4, 3 stars: 0.4-0.6, 4 stars: 0.6-0.8, 5 stars: 0.8-1.0
- Fine-tune the score from the emotion expressed in the text.

Always include the review id and return a result for every review.
Keep keywords, topics, issues, praises and summary in the language of the review.
""").strip()

PROBLEM_SYSTEM_PROMPT = "You are a product analyst who turns negative app reviews into actionable plans. You output strict JSON only."

PROBLEM_PROMPT = dedent("""
Analyze the problems and keywords extracted from negative App Store reviews below and
propose practical countermeasures.

Negative reviews: {negative_count}
Total reviews: {total_count}

Extracted problems: {issues}
Related keywords: {keywords}

Answer with a JSON object in this format:
{{
  "problemCategories": [
    {{
      "category": "problem category name (e.g. UI/UX, Performance, Functionality, Stability)",
      "description": "short description of the category",
      "issues": ["concrete problem 1", "concrete problem 2"],
      "frequency": number of occurrences,
      "priority": "high" | "medium" | "low",
      "solutions": [
        {{
          "solution": "concrete, actionable countermeasure",
          "effort": "high" | "medium" | "low",
          "impact": "high" | "medium" | "low",
          "timeline": "short" | "medium" | "long"
        }}
      ]
    }}
  ],
  "overallSummary": "overall trends, main problems and what to improve first",
  "quickWins": ["low-cost improvements that can ship right away"],
  "longTermGoals": ["long-term improvement goals"]
}}

Guidelines:
1. Categories: group into technical problems, UI/UX problems, feature requests, performance problems and so on.
2. Priority:
   - high: affects many users and the app's core functionality
   - medium: affects some users but has a workaround
   - low: worth improving but not urgent
3. Solutions must be concrete enough for the development team to act on.
4. Balance implementation cost against expected impact.
""").strip()

_TRANSIENT_ERRORS = (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError)


def build_problem_prompt(issues: List[str], keywords: List[str], negative_count: int, total_count: int) -> str:
    return PROBLEM_PROMPT.format(
        negative_count=negative_count,
        total_count=total_count,
        issues=json.dumps(issues, ensure_ascii=False),
        keywords=json.dumps(keywords, ensure_ascii=False),
    )


class LLMServiceFactory:
    """Factory for creating LLM services."""

    @staticmethod
    def create():
        """Create appropriate LLM service."""
        if settings.effective_openai_key:
            return OpenAIService()
        else:
            return FallbackLLMService()


class OpenAIService:
    """OpenAI-based classification service."""

    def __init__(self, client: Optional[Any] = None, model: Optional[str] = None,
                 request_timeout: Optional[float] = None):
        self.client = client or openai.OpenAI(api_key=settings.effective_openai_key)
        self.model = model or settings.openai_model
        self.request_timeout = request_timeout or settings.batch_timeout
        logger.info(f"OpenAI service initialized with model {self.model}")

    @staticmethod
    def _retrying(deadline: Optional[float]) -> Retrying:
        stop = stop_after_attempt(settings.max_retries)
        if deadline is not None:
            stop = stop | stop_after_delay(max(0.0, deadline - time.monotonic()))
        return Retrying(
            stop=stop,
            wait=wait_exponential(multiplier=settings.retry_delay, max=settings.retry_backoff * 10),
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            reraise=True,
        )

    def _complete(self, system: str, user: str, temperature: float, max_tokens: int,
                  deadline: Optional[float] = None) -> str:
        request_timeout = self.request_timeout
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ClassificationError("Deadline passed before the OpenAI request was sent")
            request_timeout = min(request_timeout, remaining)
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user}
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=request_timeout,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise ClassificationError("Empty response from OpenAI")
        return content.strip()

    def chat(self, system: str, user: str, temperature: float = AnalysisConstants.LLM_TEMPERATURE,
             max_tokens: int = 800, deadline: Optional[float] = None) -> str:
        """Chat call with transient-error retries; failures surface as ClassificationError.

        `deadline` is a `time.monotonic()` instant. Each request's timeout is
        cut to the time left and no retry starts after it has passed.
        """
        try:
            for attempt in self._retrying(deadline):
                with attempt:
                    text = self._complete(system, user, temperature, max_tokens, deadline)
        except openai.OpenAIError as e:
            logger.error(f"OpenAI chat failed: {e}")
            raise ClassificationError(f"OpenAI request failed: {e}") from e
        return text

    def classify_batch(self, items: List[Dict[str, Any]], deadline: Optional[float] = None) -> str:
        """Sentiment-classify a batch of {id, title, content, rating} items."""
        prompt = SENTIMENT_PROMPT.format(reviews=json.dumps(items, ensure_ascii=False, indent=2))
        logger.debug(f"Sending sentiment prompt for {len(items)} reviews ({len(prompt)} chars)")
        text = self.chat(
            SENTIMENT_SYSTEM_PROMPT,
            prompt,
            max_tokens=AnalysisConstants.LLM_MAX_TOKENS_PER_REVIEW * max(1, len(items)),
            deadline=deadline,
        )
        logger.debug(f"Received sentiment response ({len(text)} chars)")
        return text

    def refine_problems(self, prompt: str, deadline: Optional[float] = None) -> str:
        """Ask for the problem-category/solution breakdown, within `problem_timeout` by default."""
        if deadline is None:
            deadline = time.monotonic() + settings.problem_timeout
        text = self.chat(PROBLEM_SYSTEM_PROMPT, prompt, max_tokens=AnalysisConstants.LLM_PROBLEM_MAX_TOKENS,
                         deadline=deadline)
        logger.debug(f"Received problem analysis response ({len(text)} chars)")
        return text


class FallbackLLMService:
    """Stand-in used when no API key is configured; every call fails fast."""

    def __init__(self):
        logger.info("Using fallback LLM service")

    def classify_batch(self, items: List[Dict[str, Any]], deadline: Optional[float] = None) -> str:
        logger.warning("Fallback LLM service classify_batch called - no actual LLM available")
        raise ClassificationError("No LLM configured (set OPENAI_API_KEY)")

    def refine_problems(self, prompt: str, deadline: Optional[float] = None) -> str:
        logger.warning("Fallback LLM service refine_problems called - no actual LLM available")
        raise ClassificationError("No LLM configured (set OPENAI_API_KEY)")
