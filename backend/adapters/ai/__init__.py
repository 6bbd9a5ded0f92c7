# AI Adapters
# Anthropic (text) and Replicate (images)

from .anthropic_adapter import (
    AnthropicContentService,
    GeneratedBlogPost,
    content_ai_service,
    parse_blog_post_response,
)
from .replicate_adapter import (
    ReplicateImageService,
    image_ai_service,
)

__all__ = [
    "AnthropicContentService",
    "content_ai_service",
    "GeneratedBlogPost",
    "parse_blog_post_response",
    "ReplicateImageService",
    "image_ai_service",
]
