"""
AI topic generation through the OpenRouter chat completions API.

Provider trouble (timeouts, network errors, 429 and 5xx answers) is reported
as 503 so the client can retry later; anything the provider sends back that
cannot be turned into topics is a 500.
"""

import json
import logging
from typing import Annotated, Any, Dict, List, Optional

import httpx
from fastapi import Request
from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from refresher_api.config.settings import Settings
from refresher_api.core.exceptions import InternalError, ServiceUnavailableError
from refresher_api.modules.topics.schemas import GeneratedTopic

logger = logging.getLogger(__name__)

MAX_GENERATED_TOPICS = 10

_GENERATED_TOPICS = TypeAdapter(
    Annotated[List[GeneratedTopic], Field(min_length=1, max_length=MAX_GENERATED_TOPICS)]
)


class GenerationContext(BaseModel):
    technology: str
    experience_level: str
    years_away: int
    parent_title: Optional[str] = None
    parent_description: Optional[str] = None


class OpenRouterClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 30.0,
        referer: Optional[str] = None,
        app_name: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._model = model
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        if referer:
            self._headers["HTTP-Referer"] = referer
        if app_name:
            self._headers["X-Title"] = app_name
        self._client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, config: Settings) -> "OpenRouterClient":
        return cls(
            api_key=config.openrouter_api_key,
            model=config.openrouter_model,
            base_url=config.openrouter_base_url,
            timeout=config.ai_generation_timeout_seconds,
            referer=config.openrouter_referer or None,
            app_name=config.app_name,
        )

    def close(self) -> None:
        self._client.close()

    def complete(self, messages: List[Dict[str, str]]) -> str:
        """Send a chat and return the text of the first choice"""
        if not self._api_key:
            logger.error("OpenRouter API key not configured")
            raise InternalError("AI service not configured")

        payload = {
            "model": self._model,
            "messages": messages,
            "response_format": {"type": "json_object"},
            "max_tokens": 1500,
            "temperature": 0.7,
        }
        try:
            response = self._client.post(self._url, headers=self._headers, json=payload)
        except httpx.TimeoutException:
            raise ServiceUnavailableError("AI service request timed out. Please try again.")
        except httpx.HTTPError as e:
            logger.error("AI service request failed: %s", e)
            raise ServiceUnavailableError()

        if response.status_code == 429:
            raise ServiceUnavailableError("AI service rate limit exceeded. Please try again later.")
        if response.status_code >= 500:
            raise ServiceUnavailableError()
        if response.is_error:
            logger.error("AI service answered %s: %s", response.status_code, response.text)
            raise InternalError("AI service request failed")

        try:
            data = response.json()
        except ValueError:
            data = {}
        choices = (data.get("choices") if isinstance(data, dict) else None) or []
        content = (choices[0].get("message") or {}).get("content") if choices else None
        if not content:
            logger.error("AI service returned no content: %s", data)
            raise InternalError("AI service returned invalid response")
        return content


def get_ai_client(request: Request) -> OpenRouterClient:
    """Client attached at startup"""
    return request.app.state.ai_client


def build_messages(context: GenerationContext) -> List[Dict[str, str]]:
    if context.parent_title:
        scope = f'subtopics of "{context.parent_title}"'
    else:
        scope = "root-level topics"

    system = (
        "You write refresher study plans for software developers.\n"
        f"Propose 3 to 5 {scope} for {context.technology}, ordered from fundamentals to advanced.\n"
        f"The developer's experience level is {context.experience_level} and they have been away "
        f"from programming for {context.years_away} years.\n"
        "Each topic needs a title (at most 200 characters), a description of what it covers "
        "(at most 1000 characters) and 0 to 3 LeetCode problems with title, url and difficulty "
        "(Easy, Medium or Hard).\n"
        'Answer with JSON only, shaped as {"topics": [{"title": "...", "description": "...", '
        '"leetcode_links": [{"title": "...", "url": "https://leetcode.com/problems/...", '
        '"difficulty": "Easy"}]}]}.'
    )

    if context.parent_title:
        user = (
            f'Break down "{context.parent_title}" ({context.technology}) into narrower subtopics.\n'
            f"Parent description: {context.parent_description or 'none'}"
        )
    else:
        user = f"List what a developer returning to {context.technology} should revisit first."

    return [{"role": "system", "content": system}, {"role": "user", "content": user}]


def generate_topics(ai_client: OpenRouterClient, context: GenerationContext) -> List[GeneratedTopic]:
    """Ask the provider for topics and validate what comes back"""
    content = ai_client.complete(build_messages(context))

    try:
        parsed: Any = json.loads(content)
    except ValueError:
        logger.error("AI response is not JSON: %s", content)
        raise InternalError("AI service returned invalid JSON")

    # Topics may come wrapped as {"topics": [...]} or as a bare list
    if isinstance(parsed, dict) and "topics" in parsed:
        parsed = parsed["topics"]

    try:
        return _GENERATED_TOPICS.validate_python(parsed)
    except PydanticValidationError as e:
        logger.error("AI response failed validation: %s", e.errors(include_url=False))
        raise InternalError("AI service returned invalid data structure")
