"""Tests for AI fix generation."""

import pytest
from unittest.mock import patch

from conftest import make_good_signal
from seoaudit import fix_generator
from seoaudit.fix_generator import LLMFixGenerator, NullFixGenerator, get_fix_generator
from seoaudit.models import FixPriority, Issue, IssueCategory, Severity

VALID_RESPONSE = """Here are the fixes:
```json
[
  {
    "issue": "Missing title",
    "current_state": "No title tag",
    "recommendation": "Add a descriptive title",
    "ai_generated_fix": "Acme Plumbing | 24/7 Emergency Plumbers in Springfield",
    "priority": "high"
  },
  {
    "issue": "Thin content",
    "current_state": "50 words",
    "recommendation": "Expand the page",
    "ai_generated_fix": "Add a section describing services",
    "priority": "urgent"
  },
  {
    "issue": "No H2",
    "current_state": "none",
    "recommendation": "Add subheadings",
    "priority": "low"
  }
]
```"""

TITLE_ISSUE = Issue(
    category=IssueCategory.TITLE,
    severity=Severity.CRITICAL,
    message="Page is missing a title tag",
    impact=10,
)
NOINDEX_ISSUE = Issue(
    category=IssueCategory.TECHNICAL,
    severity=Severity.INFO,
    message="Page is marked as noindex and will not appear in search results.",
    impact=1,
)


@pytest.fixture
def generator():
    return LLMFixGenerator(api_key="test-key", retry_delay=0)


class TestLLMFixGenerator:
    """Test cases for LLMFixGenerator."""

    def test_initialization_defaults(self, generator):
        assert generator.api_key == "test-key"
        assert generator.provider == "anthropic"
        assert generator.model == "claude-sonnet-4-20250514"
        assert generator.max_tokens == 2000

    def test_openai_default_model(self):
        generator = LLMFixGenerator(api_key="test-key", provider="openai")
        assert generator.model == "gpt-4o"

    def test_initialization_without_key(self):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError, match="API key must be provided"):
                LLMFixGenerator()

    def test_initialization_from_env(self):
        with patch.dict("os.environ", {"LLM_API_KEY": "env-key"}):
            assert LLMFixGenerator().api_key == "env-key"

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            LLMFixGenerator(api_key="test-key", provider="gemini")

    def test_build_prompt(self, generator):
        page = make_good_signal(url="https://example.com/services", title="Home", word_count=42)
        issue = Issue(
            category=IssueCategory.TITLE,
            severity=Severity.CRITICAL,
            message="Title tag is generic and not descriptive.",
            current_value="Home",
            impact=8,
        )
        prompt = generator._build_prompt(page, [issue])

        assert "PAGE URL: https://example.com/services" in prompt
        assert "WORD COUNT: 42" in prompt
        assert '1. [CRITICAL] title: Title tag is generic and not descriptive. (Current: "Home")' in prompt
        assert "CURRENT H1: Main heading" in prompt

    def test_build_prompt_marks_missing_values(self, generator):
        prompt = generator._build_prompt(make_good_signal(title=None, h1=None), [TITLE_ISSUE])

        assert "CURRENT TITLE: (missing)" in prompt
        assert "CURRENT H1: (missing)" in prompt

    def test_parse_fixes_keeps_only_well_formed(self, generator):
        fixes = generator._parse_fixes(VALID_RESPONSE)

        assert len(fixes) == 1
        assert fixes[0].priority == FixPriority.HIGH
        assert fixes[0].ai_generated_fix.startswith("Acme Plumbing")

    def test_parse_fixes_without_array(self, generator):
        assert generator._parse_fixes("I cannot help with that.") == []

    def test_parse_fixes_invalid_json(self, generator):
        assert generator._parse_fixes("[{not json}]") == []

    @pytest.mark.asyncio
    async def test_generate_fixes(self, generator):
        with patch.object(generator, "_call_llm", return_value=VALID_RESPONSE) as mock_call:
            fixes = await generator.generate_fixes(make_good_signal(title=None), [TITLE_ISSUE, NOINDEX_ISSUE])

        assert len(fixes) == 1
        prompt = mock_call.call_args[0][0]
        assert "missing a title tag" in prompt
        assert "noindex" not in prompt

    @pytest.mark.asyncio
    async def test_info_issues_never_requested(self, generator):
        with patch.object(generator, "_call_llm") as mock_call:
            fixes = await generator.generate_fixes(make_good_signal(), [NOINDEX_ISSUE])

        assert fixes == []
        mock_call.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_issues_no_request(self, generator):
        with patch.object(generator, "_call_llm") as mock_call:
            assert await generator.generate_fixes(make_good_signal(), []) == []
        mock_call.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_failure_returns_empty(self, generator):
        with patch.object(generator, "_call_llm", side_effect=RuntimeError("service unavailable")):
            fixes = await generator.generate_fixes(make_good_signal(title=None), [TITLE_ISSUE])
        assert fixes == []

    def test_retry_on_transient_error(self, generator):
        with patch.object(
            generator, "_call_anthropic", side_effect=[Exception("Connection timeout"), "[]"]
        ) as mock_call:
            assert generator._call_llm("prompt") == "[]"
        assert mock_call.call_count == 2

    def test_non_retryable_error_fails_fast(self, generator):
        with patch.object(
            generator, "_call_anthropic", side_effect=Exception("Invalid API key provided")
        ) as mock_call:
            with pytest.raises(Exception, match="Invalid API key"):
                generator._call_llm("prompt")
        assert mock_call.call_count == 1

    def test_retries_exhausted(self, generator):
        with patch.object(
            generator, "_call_anthropic", side_effect=Exception("rate limit exceeded")
        ) as mock_call:
            with pytest.raises(Exception, match="rate limit"):
                generator._call_llm("prompt")
        assert mock_call.call_count == generator.max_retries + 1

    def test_openai_provider_dispatch(self):
        generator = LLMFixGenerator(api_key="test-key", provider="openai", retry_delay=0)
        with patch.object(generator, "_call_openai", return_value="[]") as mock_call:
            assert generator._call_llm("prompt") == "[]"
        mock_call.assert_called_once_with("prompt")


class TestGetFixGenerator:
    """Tests for the fix generator factory."""

    def test_without_key_falls_back_to_null(self):
        with patch.object(fix_generator.settings, "LLM_API_KEY", None):
            assert isinstance(get_fix_generator(), NullFixGenerator)

    def test_with_key(self):
        generator = get_fix_generator(api_key="test-key", provider="openai")

        assert isinstance(generator, LLMFixGenerator)
        assert generator.provider == "openai"

    @pytest.mark.asyncio
    async def test_null_generator(self):
        assert await NullFixGenerator().generate_fixes(make_good_signal(), [TITLE_ISSUE]) == []
