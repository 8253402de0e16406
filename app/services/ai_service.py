import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from openai import OpenAI

from app.core.config import settings
from app.core.observability import log_event

SENTIMENT_SYSTEM_PROMPT = (
    "You are a customer service analytics expert. Analyze conversations and provide "
    "insights about sentiment, topics, and customer satisfaction. Always respond with valid JSON."
)
TRANSLATION_SYSTEM_PROMPT = (
    "You translate short hotel guest requests for hotel staff. "
    "Always respond with a JSON object mapping language codes to the translated text."
)

_POSITIVE_WORDS = {"thanks", "thank", "great", "perfect", "good", "excellent", "love", "happy", "awesome"}
_NEGATIVE_WORDS = {"bad", "terrible", "angry", "awful", "refund", "complaint", "broken", "worst", "unhappy"}
_STOPWORDS = {
    "the", "a", "an", "and", "or", "to", "of", "for", "in", "on", "is", "it", "i", "you",
    "we", "my", "me", "your", "can", "be", "do", "with", "this", "that", "please", "at",
    "customer", "agent", "are", "have", "would", "like", "what", "how",
}


class AIConfigurationError(RuntimeError):
    pass


@dataclass
class AIProviderResult:
    text: str
    total_tokens: int | None = None


@dataclass
class SentimentResult:
    sentiment: str
    summary: str
    key_topics: list[str]
    customer_mood: str
    rating: int


class AIProvider(Protocol):
    provider: str
    model: str

    def complete(self, *, system_prompt: str, user_prompt: str, json_mode: bool = False) -> AIProviderResult:
        ...


class StubAIProvider:
    """Offline provider that answers the two known tasks deterministically."""

    provider = "stub"

    def __init__(self, model: str):
        self.model = model

    def complete(self, *, system_prompt: str, user_prompt: str, json_mode: bool = False) -> AIProviderResult:
        task = self._extract_value(user_prompt, "TASK")
        if task == "translate":
            languages = [
                code.strip()
                for code in self._extract_value(user_prompt, "LANGUAGES").split(",")
                if code.strip()
            ]
            text = self._extract_value(user_prompt, "TEXT")
            payload: dict[str, Any] = {code: f"[{code}] {text}" for code in languages}
        else:
            payload = self._analyze(user_prompt)
        return AIProviderResult(text=json.dumps(payload), total_tokens=max(1, len(user_prompt) // 4))

    @staticmethod
    def _extract_value(prompt: str, key: str) -> str:
        match = re.search(rf"^{key}:\s*(.+)$", prompt, re.MULTILINE)
        if not match:
            return ""
        return match.group(1).strip()

    @staticmethod
    def _analyze(prompt: str) -> dict[str, Any]:
        customer_lines = [
            line.split(":", 1)[1].strip()
            for line in prompt.splitlines()
            if line.startswith("Customer:")
        ]
        words = re.findall(r"[a-z']+", " ".join(customer_lines).lower())
        positive = sum(1 for word in words if word in _POSITIVE_WORDS)
        negative = sum(1 for word in words if word in _NEGATIVE_WORDS)
        if positive > negative:
            sentiment, mood, rating = "positive", "Satisfied", 5
        elif negative > positive:
            sentiment, mood, rating = "negative", "Frustrated", 2
        else:
            sentiment, mood, rating = "neutral", "Calm", 3

        topics: list[str] = []
        for word in words:
            if len(word) > 3 and word not in _STOPWORDS and word not in topics:
                topics.append(word)
            if len(topics) == 3:
                break

        return {
            "sentiment": sentiment,
            "summary": f"The customer sent {len(customer_lines)} message(s) to the agent.",
            "keyTopics": topics,
            "customerMood": mood,
            "rating": rating,
        }


class OpenAIProvider:
    provider = "openai"

    def __init__(self, *, api_key: str, model: str, base_url: str | None = None):
        client_kwargs: dict[str, str] = {"api_key": api_key}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self.model = model

    def complete(self, *, system_prompt: str, user_prompt: str, json_mode: bool = False) -> AIProviderResult:
        request: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": settings.ai_temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        completion = self._client.chat.completions.create(**request)

        text = ""
        if completion.choices and completion.choices[0].message:
            text = completion.choices[0].message.content or ""

        usage = completion.usage
        return AIProviderResult(
            text=text.strip(),
            total_tokens=usage.total_tokens if usage else None,
        )


def get_ai_provider() -> AIProvider:
    provider_name = settings.ai_provider.strip().lower()
    if provider_name == "stub":
        return StubAIProvider(model=settings.ai_model)
    if provider_name == "openai":
        if not settings.openai_api_key:
            raise AIConfigurationError("OPENAI_API_KEY is required when AI_PROVIDER=openai")
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.ai_model,
            base_url=settings.openai_base_url,
        )
    raise AIConfigurationError(f"Unsupported ai_provider: {settings.ai_provider}")


def build_transcript(messages: list[dict[str, str]]) -> str:
    lines = []
    for item in messages:
        speaker = "Customer" if item.get("direction") == "incoming" else "Agent"
        lines.append(f"{speaker}: {item.get('message', '')}")
    return "\n".join(lines)


def _sentiment_user_prompt(transcript: str) -> str:
    return "\n".join(
        [
            "TASK: sentiment",
            "Analyze the following conversation between a customer and an AI agent. Provide:",
            "1. Overall sentiment (positive, negative, or neutral)",
            "2. A brief summary of the conversation (2-3 sentences)",
            "3. Key topics discussed (list 3-5 topics)",
            "4. Customer's mood/emotional state (e.g., satisfied, frustrated, curious, etc.)",
            "5. A rating from 1-5 stars based on how well the interaction went",
            "",
            "Conversation:",
            transcript,
            "",
            "Respond with JSON in this exact format:",
            '{"sentiment": "positive" | "negative" | "neutral", "summary": "Brief summary here", '
            '"keyTopics": ["topic1", "topic2", "topic3"], "customerMood": "Description of customer mood", '
            '"rating": 1-5}',
        ]
    )


def _clamp_rating(value: Any) -> int:
    try:
        rating = int(value) if value else 3
    except (TypeError, ValueError):
        rating = 3
    return min(5, max(1, rating))


def normalize_sentiment(raw: dict[str, Any]) -> SentimentResult:
    topics = raw.get("keyTopics") or []
    if not isinstance(topics, list):
        topics = [str(topics)]
    return SentimentResult(
        sentiment=raw.get("sentiment") or "neutral",
        summary=raw.get("summary") or "Unable to generate summary",
        key_topics=[str(topic) for topic in topics],
        customer_mood=raw.get("customerMood") or "Unknown",
        rating=_clamp_rating(raw.get("rating")),
    )


def analyze_sentiment(messages: list[dict[str, str]], provider: AIProvider | None = None) -> SentimentResult:
    """Raises AIConfigurationError when no provider is usable, ValueError on a non-JSON answer."""
    provider = provider or get_ai_provider()
    completion = provider.complete(
        system_prompt=SENTIMENT_SYSTEM_PROMPT,
        user_prompt=_sentiment_user_prompt(build_transcript(messages)),
        json_mode=True,
    )
    if not completion.text:
        raise ValueError("No response from AI")
    parsed = json.loads(completion.text)
    if not isinstance(parsed, dict):
        raise ValueError("AI response is not a JSON object")
    return normalize_sentiment(parsed)


def translation_targets(team_languages: set[str]) -> list[str]:
    targets = {language for language in team_languages if language != "en"}
    fallback = settings.ticket_translation_fallback_language.strip().lower()
    if fallback:
        targets.add(fallback)
    return sorted(targets)


def translate_ticket_text(text: str, languages: list[str], provider: AIProvider | None = None) -> dict[str, str]:
    """Best effort: any failure yields an empty map."""
    if not settings.ticket_translation_enabled or not languages or not text.strip():
        return {}
    user_prompt = "\n".join(
        [
            "TASK: translate",
            f"LANGUAGES: {', '.join(languages)}",
            f"TEXT: {' '.join(text.split())}",
            "Return a JSON object whose keys are the language codes above.",
        ]
    )
    try:
        provider = provider or get_ai_provider()
        completion = provider.complete(
            system_prompt=TRANSLATION_SYSTEM_PROMPT,
            user_prompt=user_prompt,
            json_mode=True,
        )
        parsed = json.loads(completion.text)
        if not isinstance(parsed, dict):
            raise ValueError("translation response is not a JSON object")
    except Exception as exc:  # noqa: BLE001 - translations never fail ticket creation
        log_event(
            "ticket_translation_failed",
            level=logging.WARNING,
            languages=languages,
            error=str(exc),
        )
        return {}
    return {str(key).lower(): str(value) for key, value in parsed.items() if value}
