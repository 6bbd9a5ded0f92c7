"""
Anthropic Claude adapter for blog post generation.
"""

import asyncio
import json
import logging
import random
import re
from dataclasses import dataclass
from typing import Optional

import anthropic

from core.exceptions import AIGenerationError, GenerationTimeoutError
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

_TRANSIENT_MARKERS = ("rate_limit", "429", "500", "502", "503", "504", "overloaded", "connection")


async def _retry_with_backoff(coro_factory, max_retries=2, base_delay=1.0):
    """Retry an async operation on transient API errors with exponential backoff + jitter.

    Timeouts are not retried: the caller bounds the whole call and reports
    the timeout to the client.
    """
    for attempt in range(max_retries + 1):
        try:
            return await coro_factory()
        except anthropic.APITimeoutError:
            raise
        except anthropic.APIError as e:
            error_str = str(e).lower()
            is_transient = any(k in error_str for k in _TRANSIENT_MARKERS)
            if not is_transient or attempt == max_retries:
                raise
            delay = base_delay * (2 ** attempt) + random.uniform(0, 1)
            logger.warning(
                "Transient API error (attempt %d/%d), retrying in %.1fs: %s",
                attempt + 1, max_retries, delay, str(e),
            )
            await asyncio.sleep(delay)


@dataclass
class GeneratedBlogPost:
    """Structured blog post returned by the model."""

    title: str
    content: str
    image_prompt: Optional[str] = None


BLOG_POST_PROMPT = '''Transform the following text into a polished, engaging blog post optimized for SEO:

Original text:
"""
{original_text}
"""

Requirements:
- Create an engaging, attention-grabbing title
- Structure the content with proper headings (H2, H3)
- Use SEO-friendly formatting with bullet points, numbered lists where appropriate
- Include a compelling introduction and conclusion
- Optimize for readability and engagement
- Maintain the core message and insights from the original text
- Add relevant keywords naturally
- Write in a conversational yet professional tone
- Aim for 800-1500 words

Please format the response as JSON with the following structure:
{{
  "title": "Blog post title",
  "content": "Full blog post content with HTML formatting",
  "imagePrompt": "A detailed description for an AI image generator that would create a relevant featured image for this blog post"
}}'''

SYSTEM_PROMPT = (
    "You are an expert blog writer and SEO editor. "
    "You always answer with a single JSON object and nothing else. "
    "The content field contains HTML only (h2, h3, p, ul, ol, li, strong, em); never markdown."
)

_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*)```", re.DOTALL)


def parse_blog_post_response(response_text: Optional[str]) -> GeneratedBlogPost:
    """Parse the model's JSON answer into a GeneratedBlogPost.

    Raises:
        AIGenerationError: if the response is empty, not JSON, or lacks a
            title or content.
    """
    if not response_text or not response_text.strip():
        raise AIGenerationError("Failed to generate blog post")

    try:
        data = json.loads(response_text.strip())
    except json.JSONDecodeError as e:
        # Fall back to a markdown code block around the JSON
        fenced = _CODE_FENCE.search(response_text)
        if not fenced:
            raise AIGenerationError("Failed to parse generated blog post") from e
        try:
            data = json.loads(fenced.group(1).strip())
        except json.JSONDecodeError as fenced_error:
            raise AIGenerationError("Failed to parse generated blog post") from fenced_error

    if not isinstance(data, dict):
        raise AIGenerationError("Failed to parse generated blog post")

    title = data.get("title")
    content = data.get("content")
    if not isinstance(title, str) or not title.strip():
        raise AIGenerationError("Generated blog post has no title")
    if not isinstance(content, str) or not content.strip():
        raise AIGenerationError("Generated blog post has no content")

    image_prompt = data.get("imagePrompt")
    if not isinstance(image_prompt, str) or not image_prompt.strip():
        image_prompt = None

    return GeneratedBlogPost(
        title=title.strip(),
        content=content.strip(),
        image_prompt=image_prompt.strip() if image_prompt else None,
    )


class AnthropicContentService:
    """Blog post generation service using Anthropic Claude."""

    def __init__(self, client: Optional[anthropic.AsyncAnthropic] = None):
        if client is not None:
            self._client = client
        elif settings.anthropic_api_key:
            self._client = anthropic.AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.generation_timeout_seconds,
                max_retries=0,
            )
        else:
            logger.warning("ANTHROPIC_API_KEY not set, blog generation will use mock mode")
            self._client = None
        self._model = settings.anthropic_model
        self._max_tokens = settings.anthropic_max_tokens
        self._timeout = settings.generation_timeout_seconds
        self._max_retries = settings.ai_max_retries

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def generate_blog_post(self, original_text: str) -> GeneratedBlogPost:
        """
        Turn raw source text into a structured blog post.

        Args:
            original_text: Text supplied by the user

        Returns:
            GeneratedBlogPost with title, HTML content and image prompt

        Raises:
            GenerationTimeoutError: the model did not answer within the timeout
            AIGenerationError: the call failed or the answer was unusable
        """
        if not self._client:
            return self._mock_blog_post(original_text)

        prompt = BLOG_POST_PROMPT.format(original_text=original_text)

        try:
            message = await asyncio.wait_for(
                _retry_with_backoff(
                    lambda: self._client.messages.create(
                        model=self._model,
                        max_tokens=self._max_tokens,
                        system=SYSTEM_PROMPT,
                        messages=[{"role": "user", "content": prompt}],
                    ),
                    max_retries=self._max_retries,
                ),
                timeout=self._timeout,
            )
        except (asyncio.TimeoutError, anthropic.APITimeoutError) as e:
            logger.error("Blog generation timed out after %.0fs", self._timeout)
            raise GenerationTimeoutError() from e
        except anthropic.APIError as e:
            logger.error("Anthropic API error during blog generation: %s", e)
            raise AIGenerationError() from e

        if message.stop_reason == "max_tokens":
            logger.warning(
                "Blog generation truncated (max_tokens=%d); the JSON is likely incomplete",
                self._max_tokens,
            )

        response_text = "".join(
            block.text for block in (message.content or []) if getattr(block, "type", None) == "text"
        )
        post = parse_blog_post_response(response_text)
        logger.info("Generated blog post '%s' (%d chars)", post.title[:60], len(post.content))
        return post

    def _mock_blog_post(self, original_text: str) -> GeneratedBlogPost:
        """Generate a mock blog post for development."""
        first_line = original_text.strip().splitlines()[0] if original_text.strip() else "Untitled"
        title = first_line[:60].strip() or "Untitled"
        paragraphs = "".join(
            f"<p>{block.strip()}</p>" for block in original_text.split("\n\n") if block.strip()
        )
        content = (
            f"<h2>{title}</h2>"
            f"{paragraphs}"
            "<h2>Key takeaways</h2><ul><li>Summarised from your notes</li></ul>"
        )
        return GeneratedBlogPost(
            title=title,
            content=content,
            image_prompt=f"An editorial illustration about {title}",
        )


# Singleton instance
content_ai_service = AnthropicContentService()
