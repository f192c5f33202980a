"""Response resolution: from any handler return value to one response.

Captured values:

- a ``Response`` / ``StreamingResponse`` is final and passes through
- ``None`` means "not handled" and declines the request
- anything else is offered to the resolver chain until it becomes final
"""

from perch.resolution.builtin import BUILTIN_RESOLVERS
from perch.resolution.combinators import Applied, Merged, apply_to, merge
from perch.resolution.pipeline import ResolutionPipeline
from perch.resolution.registry import ResolverRegistry
from perch.resolution.transforms import content_type, download, header

__all__ = [
    "BUILTIN_RESOLVERS",
    "Applied",
    "Merged",
    "ResolutionPipeline",
    "ResolverRegistry",
    "apply_to",
    "content_type",
    "download",
    "header",
    "merge",
]
