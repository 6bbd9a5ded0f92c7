"""
Service layer for business logic.
"""

from services.access_gate import AccessGate, AccessInfo
from services.blog_generation import BlogGenerationWorkflow, GenerationResult
from services.generation_tracker import GenerationTracker
from services.post_store import Pagination, PostStore

__all__ = [
    "AccessGate",
    "AccessInfo",
    "BlogGenerationWorkflow",
    "GenerationResult",
    "GenerationTracker",
    "Pagination",
    "PostStore",
]
