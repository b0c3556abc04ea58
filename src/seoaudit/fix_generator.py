"""AI fix generation for actionable SEO issues."""

import asyncio
import json
import logging
import os
import re
import time
from abc import ABC, abstractmethod
from typing import Optional

from seoaudit.config import settings
from seoaudit.constants import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_OPENAI_MODEL,
    FIX_GENERATION_MAX_RETRIES,
    FIX_GENERATION_MAX_TOKENS,
    FIX_GENERATION_RETRY_DELAY_SECONDS,
)
from seoaudit.models import Fix, FixPriority, Issue, PageSignal

logger = logging.getLogger(__name__)

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")

_NON_RETRYABLE_ERRORS = (
    'invalid api key',
    'authentication',
    'unauthorized',
    'invalid_api_key',
    'model not found',
    'invalid model',
)

_FIX_FIELDS = ("issue", "current_state", "recommendation", "ai_generated_fix")


class FixGenerator(ABC):
    """Produces remediation records for a page's issues.

    Implementations must never raise to the caller: any internal failure
    degrades to an empty list.
    """

    @abstractmethod
    async def generate_fixes(self, page: PageSignal, issues: list[Issue]) -> list[Fix]:
        """Generate fixes for the given issues of a page."""


class NullFixGenerator(FixGenerator):
    """Fix generator used when no LLM provider is configured."""

    async def generate_fixes(self, page: PageSignal, issues: list[Issue]) -> list[Fix]:
        return []


class LLMFixGenerator(FixGenerator):
    """Generates fixes with an LLM provider (anthropic or openai)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        provider: str = "anthropic",
        max_tokens: int = FIX_GENERATION_MAX_TOKENS,
        max_retries: int = FIX_GENERATION_MAX_RETRIES,
        retry_delay: float = FIX_GENERATION_RETRY_DELAY_SECONDS,
    ):
        """Initialize the fix generator.

        Args:
            api_key: API key for the LLM provider
            model: Model name; defaults per provider
            provider: LLM provider (anthropic, openai)
            max_tokens: Maximum tokens for the response
            max_retries: Retries for transient provider errors
            retry_delay: Initial delay between retries in seconds
        """
        self.api_key = api_key or os.getenv("LLM_API_KEY")
        self.provider = provider
        self.model = model or (
            DEFAULT_OPENAI_MODEL if provider == "openai" else DEFAULT_ANTHROPIC_MODEL
        )
        self.max_tokens = max_tokens
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        if not self.api_key:
            raise ValueError(
                "API key must be provided or set in LLM_API_KEY environment variable"
            )
        if provider not in ("anthropic", "openai"):
            raise ValueError(f"Unsupported provider: {provider}")

    async def generate_fixes(self, page: PageSignal, issues: list[Issue]) -> list[Fix]:
        """Generate fixes for the critical and warning issues of a page.

        Args:
            page: Signals of the page the issues were found on
            issues: Issues from the page score; info issues are ignored

        Returns:
            Well-formed fixes, or an empty list on any failure
        """
        actionable = [issue for issue in issues if issue.is_actionable]
        if not actionable:
            return []

        try:
            prompt = self._build_prompt(page, actionable)
            response = await asyncio.to_thread(self._call_llm, prompt)
            return self._parse_fixes(response or "")
        except Exception as e:
            logger.error(f"Failed to generate fixes for {page.url}: {e}")
            return []

    def _build_prompt(self, page: PageSignal, issues: list[Issue]) -> str:
        issue_lines = []
        for index, issue in enumerate(issues, start=1):
            line = f"{index}. [{issue.severity.value.upper()}] {issue.category.value}: {issue.message}"
            if issue.current_value:
                line += f' (Current: "{issue.current_value}")'
            issue_lines.append(line)
        issue_list = "\n".join(issue_lines)

        return f"""You are an SEO expert. Analyze the following page and generate specific, actionable fixes for each issue.

PAGE URL: {page.url}
CURRENT TITLE: {page.title or '(missing)'}
CURRENT META DESCRIPTION: {page.meta_description or '(missing)'}
CURRENT H1: {page.h1 or '(missing)'}
WORD COUNT: {page.word_count}
IMAGES: {page.image_count} total, {page.images_without_alt} missing alt text
INTERNAL LINKS: {page.internal_links}
EXTERNAL LINKS: {page.external_links}

ISSUES FOUND:
{issue_list}

For each issue, respond in this exact JSON format (array of objects):
[
  {{
    "issue": "brief issue description",
    "current_state": "what it is now",
    "recommendation": "what to do",
    "ai_generated_fix": "the exact replacement text or action",
    "priority": "high|medium|low"
  }}
]

Rules:
- Title tags should be 50-60 characters, include the primary keyword and brand name
- Meta descriptions should be 150-160 characters with a call-to-action
- Write in plain English suitable for a small business owner
- Be specific: write the actual replacement text, not generic advice
- Respond ONLY with the JSON array, no other text"""

    def _parse_fixes(self, text: str) -> list[Fix]:
        """Parse the JSON array of fixes out of an LLM response.

        The array may be wrapped in markdown fences or prose; malformed
        entries are dropped.
        """
        match = _JSON_ARRAY_RE.search(text)
        if not match:
            return []

        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse AI fixes: {e}")
            return []

        if not isinstance(parsed, list):
            return []

        fixes = []
        for item in parsed:
            if not isinstance(item, dict):
                continue
            if not all(isinstance(item.get(name), str) for name in _FIX_FIELDS):
                continue
            try:
                priority = FixPriority(item.get("priority"))
            except ValueError:
                continue
            fixes.append(Fix(
                issue=item["issue"],
                current_state=item["current_state"],
                recommendation=item["recommendation"],
                ai_generated_fix=item["ai_generated_fix"],
                priority=priority,
            ))
        return fixes

    def _call_llm(self, prompt: str) -> str:
        """Call the LLM with the given prompt, with retry logic.

        Transient failures (connection errors, rate limits, timeouts) are
        retried with exponential backoff; auth and model errors are raised
        immediately.

        Args:
            prompt: The prompt to send

        Returns:
            LLM response text
        """
        last_exception = None
        current_delay = self.retry_delay

        for attempt in range(self.max_retries + 1):
            try:
                if self.provider == "openai":
                    return self._call_openai(prompt)
                return self._call_anthropic(prompt)
            except Exception as e:
                error_str = str(e).lower()
                last_exception = e

                if any(err in error_str for err in _NON_RETRYABLE_ERRORS):
                    logger.error(f"Non-retryable LLM error: {e}")
                    raise

                if attempt < self.max_retries:
                    logger.warning(
                        f"LLM call failed (attempt {attempt + 1}/{self.max_retries + 1}): {e}. "
                        f"Retrying in {current_delay:.1f}s..."
                    )
                    time.sleep(current_delay)
                    current_delay *= 2

        raise last_exception

    def _call_openai(self, prompt: str) -> str:
        import openai

        client = openai.OpenAI(api_key=self.api_key)
        response = client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": "You are an expert SEO analyst."},
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content

    def _call_anthropic(self, prompt: str) -> str:
        import anthropic

        client = anthropic.Anthropic(api_key=self.api_key)
        response = client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        for block in response.content:
            if block.type == "text":
                return block.text
        return ""


def get_fix_generator(
    api_key: Optional[str] = None,
    provider: Optional[str] = None,
    model: Optional[str] = None,
) -> FixGenerator:
    """Build the configured fix generator.

    Falls back to NullFixGenerator when no API key is available.
    """
    api_key = api_key or settings.LLM_API_KEY
    if not api_key:
        logger.warning("No LLM API key configured; fix generation disabled")
        return NullFixGenerator()
    return LLMFixGenerator(
        api_key=api_key,
        provider=provider or settings.LLM_PROVIDER,
        model=model or settings.LLM_MODEL,
    )
