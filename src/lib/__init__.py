"""
pagesmith - HTML pre-compiler

Library layer: document model, parser, directive compiler and the
standard pipeline that ties them to a resource backend.
"""

__version__ = "1.0.0"
__author__ = "Rudolph Pienaar"
__email__ = "rudolph.pienaar@gmail.com"

from .log import LOG, state_connectToLogger, state_disconnectFromLogger
from .errors import (
    PipelineError,
    CacheMiss,
    ResourceError,
    ResourceNotFound,
    ResourceFormatError,
    CircularInclusionError,
    EvaluationError,
    StructuralError,
    SlotResolutionError,
)
from .dom import DocumentNode, TagNode, TextNode
from .evaluator import Evaluator
from .cache import PipelineCache
from .backend import ResourceBackend, FileSystemBackend, MemoryBackend
from .parser import ResourceParser
from .compiler import Compiler
from .formatter import HtmlFormatter, StandardHtmlFormatter
from .pipeline import StandardPipeline

__all__ = [
    "LOG",
    "state_connectToLogger",
    "state_disconnectFromLogger",
    "PipelineError",
    "CacheMiss",
    "ResourceError",
    "ResourceNotFound",
    "ResourceFormatError",
    "CircularInclusionError",
    "EvaluationError",
    "StructuralError",
    "SlotResolutionError",
    "DocumentNode",
    "TagNode",
    "TextNode",
    "Evaluator",
    "PipelineCache",
    "ResourceBackend",
    "FileSystemBackend",
    "MemoryBackend",
    "ResourceParser",
    "Compiler",
    "HtmlFormatter",
    "StandardHtmlFormatter",
    "StandardPipeline",
    "__version__",
]
