"""
Compilation data models

Fragments, components, pages and the contexts that carry slot contents,
parameters and scope through a compile.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING, cast

from ..lib.dom import DocumentNode, NodePairCallback
from .scope import Scope

if TYPE_CHECKING:
    from ..lib.pipeline import StandardPipeline


class ResourceType(Enum):
    """Kinds of resource exchanged with the resource backend"""
    HTML = "html"
    CSS = "css"
    JAVASCRIPT = "javascript"
    PYTHON = "python"

    @property
    def extension(self) -> str:
        return {
            ResourceType.HTML: "html",
            ResourceType.CSS: "css",
            ResourceType.JAVASCRIPT: "js",
            ResourceType.PYTHON: "py",
        }[self]


class StyleBindType(Enum):
    """How a component style reaches the page"""
    HEAD = "head"    # inline <style> in the page head
    LINK = "link"    # extracted stylesheet + <link> in the page head


@dataclass
class Fragment:
    """
    A named markup subtree.

    Attributes:
        path: Resource path the fragment was read from
        dom: Root of the fragment's tree
    """
    path: str
    dom: DocumentNode

    def clone(self, on_node_pair: Optional[NodePairCallback] = None) -> 'Fragment':
        """Deep copy sharing no nodes with this fragment"""
        dom = cast(DocumentNode, self.dom.clone(True, on_node_pair))
        return Fragment(path=self.path, dom=dom)


@dataclass
class ComponentScript:
    """
    Instance script of a component.

    Exactly one of ``text`` (inline body) or ``src`` (external script
    resource) is set.
    """
    text: Optional[str] = None
    src: Optional[str] = None


@dataclass
class ComponentStyle:
    """Raw style block of a component and its bind mode"""
    text: str
    bind_type: StyleBindType = StyleBindType.HEAD


@dataclass
class Component:
    """
    A fragment template paired with an instance script and optional style.

    Attributes:
        path: Resource path of the component file
        template: The markup template
        script: Instance script producing the component's scope data
        style: Optional style block
    """
    path: str
    template: Fragment
    script: Optional[ComponentScript] = None
    style: Optional[ComponentStyle] = None

    def clone(self, on_node_pair: Optional[NodePairCallback] = None) -> 'Component':
        return Component(
            path=self.path,
            template=self.template.clone(on_node_pair),
            script=self.script,
            style=self.style,
        )


@dataclass
class FragmentContext:
    """
    Per-compile bundle handed to a fragment or component.

    Attributes:
        slot_contents: Slot name -> already-compiled content supplied by the caller
        parameters: Parameter name -> evaluated value
        scope: Identifiers visible to expressions in the compiled fragment
    """
    slot_contents: Dict[str, DocumentNode] = field(default_factory=dict)
    parameters: Dict[str, Any] = field(default_factory=dict)
    scope: Scope = field(default_factory=Scope)


@dataclass(frozen=True)
class PipelineContext:
    """
    Resolution context of one compilation step. Never mutated; nested
    scopes get a new instance.
    """
    pipeline: 'StandardPipeline'
    fragment: Fragment
    fragment_context: FragmentContext


@dataclass
class Page:
    """
    Result of compiling a page.

    Attributes:
        path: Output resource path
        dom: Final compiled tree
        html: Serialized and formatted markup
    """
    path: str
    dom: DocumentNode
    html: str
