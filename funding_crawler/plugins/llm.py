"""
AI enhancement plugin for program cleanup and categorization.

Supports multiple providers:
- OpenAI (default, gpt-4o-mini)
- Groq (OpenAI-compatible endpoint, llama-3.1-8b-instant)
- Anthropic Claude

All calls go through one AIEnhancementGate per run. The first
quota/billing failure latches the gate off for the rest of the run;
every operation then returns its input unchanged.

This plugin is optional - requires API keys to function.
"""

import json
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Optional

import structlog
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from funding_crawler.core.models import ProgramRecord

logger = structlog.get_logger(__name__)


GROQ_BASE_URL = "https://api.groq.com/openai/v1"

PROGRAM_TYPES = ("grant", "loan", "equity", "hybrid", "other")
TARGET_AUDIENCES = ("startups", "smes", "enterprises", "individuals", "all")

MIN_SUMMARY_LENGTH = 20
MIN_ELIGIBILITY_LENGTH = 30
STRUCTURED_CONTENT_LIMIT = 12000

SUMMARY_SYSTEM = (
    "You are an expert at writing clear, concise funding program summaries. "
    "Remove all marketing content, navigation menus, and irrelevant information."
)
SUMMARY_PROMPT = """Improve this funding program summary. Make it concise (2-3 sentences), professional, and informative. Remove marketing fluff, navigation text, and irrelevant content.

Current summary: {summary}
{eligibility_context}

Return ONLY the improved summary, no explanations or markdown formatting."""

ELIGIBILITY_SYSTEM = (
    "You are an expert at cleaning and extracting eligibility criteria from funding program text. "
    "Remove all irrelevant content and keep only actual requirements."
)
ELIGIBILITY_PROMPT = """Clean and improve this eligibility criteria text. Remove:
- Footer text, copyright notices, legal disclaimers
- Navigation menus and links
- Marketing content and testimonials
- General website information
- Contact information (keep only if it's part of eligibility requirements)

Keep only the actual eligibility requirements, qualifications, and criteria for applicants.

Current eligibility text:
{eligibility}

{context}

Return ONLY the cleaned eligibility criteria, no explanations."""

CATEGORIZE_SYSTEM = "You are an expert at categorizing funding programs. Return only valid JSON."
CATEGORIZE_PROMPT = """Categorize this funding program. Return JSON with:
- sectors: Array of relevant sectors (e.g., ["agriculture", "technology", "manufacturing"])
- programType: One of: "grant", "loan", "equity", "hybrid", "other"
- targetAudience: One of: "startups", "smes", "enterprises", "individuals", "all"

Program name: {name}
Summary: {summary}
Eligibility: {eligibility}

Return ONLY valid JSON."""

STRUCTURED_SYSTEM = (
    "You are an expert at extracting structured data from funding program web pages. "
    "You extract only factual, relevant information and remove all marketing content, navigation menus, "
    "testimonials, and irrelevant text. Return only valid JSON."
)
STRUCTURED_PROMPT = """Extract structured funding program information from this webpage content. Return a JSON object with these fields:

- overview: A clear 2-3 sentence overview of what this funding program offers (remove marketing fluff, navigation text, testimonials)
- eligibility: Detailed eligibility criteria - who can apply, requirements, qualifications. Remove footer text, copyright notices, and navigation menus.
- fundingAmount: Specific funding amounts mentioned (e.g., "R500,000 to R5 million" or "Up to R2 million")
- deadlines: Application deadlines or "ongoing" if no deadline
- applicationProcess: Step-by-step application process (if available)
- sectors: Array of relevant industries/sectors
- contactEmail: Contact email address if found
- contactPhone: Contact phone number if found
- programType: One of: "grant", "loan", "equity", "hybrid", "other"
- targetAudience: One of: "startups", "smes", "enterprises", "individuals", "all"

Webpage URL: {url}
Program Name: {name}

Webpage content:
{content}

IMPORTANT:
- Extract ONLY factual information about the funding program
- For eligibility: Extract actual requirements, not general website text
- For overview: Focus on what the program does, not organizational background
- Return ONLY valid JSON, no markdown formatting, no code blocks"""


@dataclass(frozen=True)
class CompletionRequest:
    """One call to a text-completion service."""
    system: str
    prompt: str
    temperature: float = 0.3
    max_tokens: Optional[int] = None
    json_mode: bool = False


@dataclass
class Categorization:
    """AI categorization result."""
    sectors: list[str] = field(default_factory=list)
    program_type: str = "other"
    target_audience: str = "all"


class CompletionProvider(ABC):
    """Abstract base class for completion providers."""

    name: str = "base"

    def __init__(self, api_key: Optional[str], model: str):
        self.api_key = api_key
        self.model = model

    def is_available(self) -> bool:
        """Check if provider is configured."""
        return bool(self.api_key)

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> str:
        """Return the completion text. Errors propagate to the gate."""
        pass


class OpenAIProvider(CompletionProvider):
    """OpenAI chat completions provider."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
    ):
        super().__init__(api_key or os.getenv("OPENAI_API_KEY"), model)
        self.base_url = base_url
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        """Lazy-create the client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def complete(self, request: CompletionRequest) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": request.system},
                {"role": "user", "content": request.prompt},
            ],
            "temperature": request.temperature,
        }
        if request.max_tokens:
            kwargs["max_tokens"] = request.max_tokens
        if request.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._get_client().chat.completions.create(**kwargs)
        return (response.choices[0].message.content or "").strip()


class GroqProvider(OpenAIProvider):
    """Groq provider over its OpenAI-compatible API."""

    name = "groq"

    def __init__(self, api_key: Optional[str] = None, model: str = "llama-3.1-8b-instant"):
        super().__init__(api_key or os.getenv("GROQ_API_KEY"), model, base_url=GROQ_BASE_URL)


class ClaudeProvider(CompletionProvider):
    """Anthropic Claude provider."""

    name = "claude"
    default_max_tokens = 1024

    def __init__(self, api_key: Optional[str] = None, model: str = "claude-3-5-haiku-latest"):
        super().__init__(api_key or os.getenv("ANTHROPIC_API_KEY"), model)
        self._client: Optional[AsyncAnthropic] = None

    def _get_client(self) -> AsyncAnthropic:
        """Lazy-create the client."""
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def complete(self, request: CompletionRequest) -> str:
        message = await self._get_client().messages.create(
            model=self.model,
            system=request.system,
            max_tokens=request.max_tokens or self.default_max_tokens,
            temperature=request.temperature,
            messages=[{"role": "user", "content": request.prompt}],
        )
        return "".join(block.text for block in message.content if getattr(block, "type", "") == "text").strip()


PROVIDERS = {
    "openai": OpenAIProvider,
    "groq": GroqProvider,
    "claude": ClaudeProvider,
}


def create_provider(name: Optional[str] = None) -> Optional[CompletionProvider]:
    """
    Build the configured provider.

    Args:
        name: Provider name, defaults to AI_PROVIDER env var or "openai"

    Returns:
        Provider, or None for an unknown name
    """
    name = (name or os.getenv("AI_PROVIDER") or "openai").lower()
    provider_class = PROVIDERS.get(name)
    if provider_class is None:
        logger.warning("unknown_ai_provider", provider=name, known=sorted(PROVIDERS))
        return None

    provider = provider_class()
    if not provider.is_available():
        logger.warning("ai_provider_not_configured", provider=name, hint=f"set {name.upper()}_API_KEY")
    return provider


def is_quota_error(error: BaseException) -> bool:
    """HTTP 429, or an error message mentioning quota or billing."""
    for attribute in ("status_code", "status"):
        if getattr(error, attribute, None) == 429:
            return True
    message = str(error).lower()
    return "quota" in message or "billing" in message


def parse_json_response(text: str) -> Optional[dict]:
    """Parse a JSON object from a completion, tolerating markdown code fences."""
    if not text:
        return None

    match = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
    json_str = match.group(1) if match else text.strip()

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.warning("json_parse_failed", error=str(e), response=text[:200])
        return None

    return data if isinstance(data, dict) else None


class AIEnhancementGate:
    """
    Quota-aware circuit breaker around one completion provider.

    One instance per run, shared by every enhancement call site. The
    latch is monotonic: once disabled it never re-enables.
    """

    def __init__(self, provider: Optional[CompletionProvider] = None):
        self.provider = provider
        self._quota_exceeded = False

    @property
    def quota_exceeded(self) -> bool:
        return self._quota_exceeded

    def is_available(self) -> bool:
        return self.provider is not None and self.provider.is_available() and not self._quota_exceeded

    def trip(self) -> None:
        if not self._quota_exceeded:
            self._quota_exceeded = True
            logger.error(
                "ai_quota_exceeded",
                provider=self.provider.name if self.provider else None,
                action="disabling AI for remainder of run",
            )

    async def complete(self, request: CompletionRequest, operation: str) -> Optional[str]:
        """
        Run one completion through the gate.

        Returns:
            Completion text, or None when the gate is closed or the call failed
        """
        if not self.is_available():
            return None

        try:
            return await self.provider.complete(request)
        except Exception as e:
            if is_quota_error(e):
                self.trip()
            else:
                logger.warning("ai_call_failed", operation=operation, error=str(e))
            return None


def _normalize_choice(value: Any, allowed: tuple[str, ...], default: str) -> str:
    value = str(value or "").strip().lower()
    return value if value in allowed else default


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip().lower() for item in value if str(item).strip()]


def merge_sectors(existing: str, extra: list[str]) -> str:
    """Merge comma-joined sector tags with new ones, preserving order."""
    tags = [t.strip() for t in existing.split(",") if t.strip()] if existing else []
    for tag in extra:
        if tag not in tags:
            tags.append(tag)
    return ", ".join(tags)


class ProgramEnhancer:
    """
    AI enhancement operations for program records.

    Every operation consults the shared gate and falls back to its
    input (or a neutral default) when the gate is closed or the call
    fails.

    Usage:
        gate = AIEnhancementGate(create_provider("groq"))
        enhancer = ProgramEnhancer(gate)
        record = await enhancer.enhance(record, page_text)
    """

    def __init__(self, gate: AIEnhancementGate):
        self.gate = gate

    async def improve_summary(self, summary: str, eligibility: str = "") -> str:
        if not summary or len(summary) < MIN_SUMMARY_LENGTH:
            return summary

        eligibility_context = f"Eligibility context: {eligibility[:200]}" if eligibility else ""
        request = CompletionRequest(
            system=SUMMARY_SYSTEM,
            prompt=SUMMARY_PROMPT.format(summary=summary, eligibility_context=eligibility_context),
            temperature=0.5,
            max_tokens=200,
        )
        improved = await self.gate.complete(request, "improve_summary")
        return improved or summary

    async def improve_eligibility(self, eligibility: str, raw_text: str = "") -> str:
        if not eligibility or len(eligibility) < MIN_ELIGIBILITY_LENGTH:
            return eligibility

        context = f"Additional context: {raw_text[:500]}" if raw_text else ""
        request = CompletionRequest(
            system=ELIGIBILITY_SYSTEM,
            prompt=ELIGIBILITY_PROMPT.format(eligibility=eligibility[:1000], context=context),
            temperature=0.3,
            max_tokens=600,
        )
        improved = await self.gate.complete(request, "improve_eligibility")
        return improved or eligibility

    async def categorize(self, program: ProgramRecord) -> Categorization:
        """Categorize by sectors, program type and target audience."""
        request = CompletionRequest(
            system=CATEGORIZE_SYSTEM,
            prompt=CATEGORIZE_PROMPT.format(
                name=program.name or "Unknown",
                summary=program.summary[:300] or "N/A",
                eligibility=program.eligibility[:300] or "N/A",
            ),
            temperature=0.2,
            json_mode=True,
        )
        data = parse_json_response(await self.gate.complete(request, "categorize") or "")
        if not data:
            return Categorization()

        return Categorization(
            sectors=_string_list(data.get("sectors")),
            program_type=_normalize_choice(data.get("programType"), PROGRAM_TYPES, "other"),
            target_audience=_normalize_choice(data.get("targetAudience"), TARGET_AUDIENCES, "all"),
        )

    async def extract_structured(self, content: str, url: str, name: str = "") -> Optional[dict[str, Any]]:
        """
        Extract every structured field from page text in one call.

        Args:
            content: Stripped page text (truncated to 12000 chars)
            url: Page URL
            name: Program name, if known

        Returns:
            Dict with overview, eligibility, funding_amount, deadlines,
            application_process, sectors, contact_email, contact_phone,
            program_type, target_audience; None on failure
        """
        if not content:
            return None

        request = CompletionRequest(
            system=STRUCTURED_SYSTEM,
            prompt=STRUCTURED_PROMPT.format(url=url, name=name or "Unknown", content=content[:STRUCTURED_CONTENT_LIMIT]),
            temperature=0.2,
            max_tokens=1500,
            json_mode=True,
        )
        data = parse_json_response(await self.gate.complete(request, "extract_structured") or "")
        if not data:
            return None

        def text(key: str) -> str:
            value = data.get(key)
            return str(value).strip() if value else ""

        return {
            "overview": text("overview"),
            "eligibility": text("eligibility"),
            "funding_amount": text("fundingAmount"),
            "deadlines": text("deadlines"),
            "application_process": text("applicationProcess"),
            "sectors": _string_list(data.get("sectors")),
            "contact_email": text("contactEmail"),
            "contact_phone": text("contactPhone"),
            "program_type": _normalize_choice(data.get("programType"), PROGRAM_TYPES, "other"),
            "target_audience": _normalize_choice(data.get("targetAudience"), TARGET_AUDIENCES, "all"),
        }

    async def enhance(self, program: ProgramRecord, page_text: str = "") -> ProgramRecord:
        """
        Enhance a record.

        Structured extraction fills empty fields only; summary and
        eligibility are then cleaned; categorization merges sectors and
        sets type/audience. Returns a new record.
        """
        if not self.gate.is_available():
            return program

        updates: dict[str, Any] = {}

        structured = await self.extract_structured(page_text, program.source, program.name) if page_text else None
        if structured:
            for record_field, key in (
                ("summary", "overview"),
                ("eligibility", "eligibility"),
                ("funding_amount", "funding_amount"),
                ("deadlines", "deadlines"),
                ("application_process", "application_process"),
                ("contact_email", "contact_email"),
                ("contact_phone", "contact_phone"),
            ):
                if structured[key] and not getattr(program, record_field):
                    updates[record_field] = structured[key]
                    logger.debug("field_enhanced", field=record_field, source="ai")
            updates["sectors"] = merge_sectors(program.sectors, structured["sectors"])
            updates["program_type"] = structured["program_type"]
            updates["target_audience"] = structured["target_audience"]

        enhanced = replace(program, **updates)

        summary = await self.improve_summary(enhanced.summary, enhanced.eligibility)
        eligibility = await self.improve_eligibility(enhanced.eligibility, page_text)
        enhanced = replace(enhanced, summary=summary, eligibility=eligibility)

        if self.gate.is_available():
            categorization = await self.categorize(enhanced)
            enhanced = replace(
                enhanced,
                sectors=merge_sectors(enhanced.sectors, categorization.sectors),
                program_type=enhanced.program_type or categorization.program_type,
                target_audience=enhanced.target_audience or categorization.target_audience,
            )

        return enhanced
