"""
Models package for pagesmith

Contains data structures and type definitions for the compilation pipeline.
"""

from .state import ProgramState, pipeline
from .scope import Scope, identifier_normalize
from .fragment import (
    ResourceType,
    StyleBindType,
    Fragment,
    ComponentScript,
    ComponentStyle,
    Component,
    FragmentContext,
    PipelineContext,
    Page,
)

__all__ = [
    "ProgramState",
    "pipeline",
    "Scope",
    "identifier_normalize",
    "ResourceType",
    "StyleBindType",
    "Fragment",
    "ComponentScript",
    "ComponentStyle",
    "Component",
    "FragmentContext",
    "PipelineContext",
    "Page",
]
