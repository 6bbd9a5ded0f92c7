"""
Replicate adapter for featured image generation.
"""

import asyncio
import logging
from typing import Any, Optional

import replicate

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

FEATURED_IMAGE_PROMPT = (
    "Create a modern, professional blog post featured image: {prompt}. "
    "Style: clean, minimal, high-quality, suitable for a business blog."
)

# Wide banner format used for featured images
FEATURED_IMAGE_ASPECT_RATIO = "16:9"


def _extract_url(output: Any) -> Optional[str]:
    """Replicate models return a URL string, a list of URLs, or FileOutput objects."""
    if isinstance(output, list):
        if not output:
            return None
        output = output[0]
    if output is None:
        return None
    if hasattr(output, "url"):
        url = output.url
        return url() if callable(url) else url
    return str(output) or None


class ReplicateImageService:
    """Featured image generation using a Replicate-hosted model."""

    def __init__(self, client: Optional[replicate.Client] = None):
        self._model = settings.replicate_model
        self._timeout = settings.image_timeout_seconds
        if client is not None:
            self._client = client
        elif not settings.replicate_api_token:
            logger.warning("REPLICATE_API_TOKEN not set, image generation will use mock mode")
            self._client = None
        else:
            self._client = replicate.Client(api_token=settings.replicate_api_token)
            logger.info("Replicate client initialized with model: %s", self._model)

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def generate_blog_image(self, prompt: str) -> Optional[str]:
        """
        Generate a featured image for a blog post.

        Image generation is best effort: any failure is logged and reported
        as ``None`` so the post can still be created without an image.

        Args:
            prompt: Image description produced alongside the post

        Returns:
            Image URL, or None if generation failed
        """
        if not self._client:
            return "https://picsum.photos/1792/1024"

        full_prompt = FEATURED_IMAGE_PROMPT.format(prompt=prompt)
        try:
            # Synchronous client, run in a worker thread
            output = await asyncio.wait_for(
                asyncio.to_thread(self._run_model, full_prompt),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Featured image generation timed out after %.0fs", self._timeout)
            return None
        except Exception as e:
            logger.warning("Featured image generation failed: %s", e, exc_info=True)
            return None

        image_url = _extract_url(output)
        if image_url:
            logger.info("Generated featured image: %s", image_url)
        else:
            logger.warning("Replicate returned no image for model %s", self._model)
        return image_url

    def _run_model(self, prompt: str):
        """Run the Replicate model synchronously (called in a thread pool)."""
        return self._client.run(
            self._model,
            input={
                "prompt": prompt,
                "aspect_ratio": FEATURED_IMAGE_ASPECT_RATIO,
            },
        )


# Singleton instance
image_ai_service = ReplicateImageService()
