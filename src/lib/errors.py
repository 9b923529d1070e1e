"""
Exception taxonomy for pagesmith

Every error raised by the core derives from PipelineError. None of them is
recovered locally: they propagate through the recursive compiler and abort
the top-level call that triggered them.
"""

from typing import List, Optional


class PipelineError(Exception):
    """Base class for all pagesmith errors"""
    pass


class CacheMiss(PipelineError, KeyError):
    """
    Raised when a cache entry is read without checking for it first.

    Indicates a programming error at the call site; every get is expected
    to be guarded by the matching has check.
    """

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(
            f"{kind} not found in cache: {key}. Make sure to call {kind.lower()}_has() before {kind.lower()}_get()."
        )

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class ResourceError(PipelineError):
    """Base class for errors tied to a named resource"""

    def __init__(self, message: str, res_path: str):
        self.res_path = res_path
        super().__init__(message)


class ResourceNotFound(ResourceError):
    """Raised when the resource backend has no resource at the given path"""

    def __init__(self, res_path: str, kind: str = "resource"):
        self.kind = kind
        super().__init__(f"Cannot find {kind}: {res_path}", res_path)


class CircularInclusionError(ResourceError):
    """Raised when a fragment or component (indirectly) includes itself"""

    def __init__(self, res_path: str, chain: List[str]):
        self.chain = list(chain)
        cycle = " -> ".join(self.chain + [res_path])
        super().__init__(f"Circular inclusion detected: {cycle}", res_path)


class EvaluationError(PipelineError):
    """
    Raised when an embedded expression or script fails.

    Attributes:
        source: The expression or script text that was evaluated
        cause: The underlying exception
    """

    def __init__(self, source: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.source = source
        self.cause = cause
        reason = message or (f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error")
        super().__init__(f"Error evaluating {source!r}: {reason}")


class StructuralError(PipelineError):
    """Raised on an illegal tree mutation, such as inserting next to a document root"""
    pass


class SlotResolutionError(PipelineError):
    """
    Raised when slot content cannot be bound unambiguously.

    Covers a required slot with neither supplied nor default content, two
    content supplies for one slot name, and two slots sharing a name
    within one template.
    """

    def __init__(self, message: str, slot_name: str, res_path: Optional[str] = None):
        self.slot_name = slot_name
        self.res_path = res_path
        where = f" in {res_path}" if res_path else ""
        super().__init__(f"{message}{where}")


class ResourceFormatError(ResourceError):
    """Raised when a resource parses but does not have the expected structure"""

    def __init__(self, message: str, res_path: str):
        super().__init__(f"{message}: {res_path}", res_path)
