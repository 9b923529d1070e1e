"""
Style binding

Attaches a compiled component style to the component's output. The bound
node carries a marker attribute; page assembly later hoists every marked
node into the page <head> and drops duplicates.

Bind modes:
    head - inline <style> element
    link - stylesheet extracted through the pipeline's resource_link()
           and referenced by a <link> element
"""

from ..config import appsettings
from ..models.fragment import PipelineContext, ResourceType, StyleBindType
from .dom import TagNode, TextNode
from .log import LOG


def bindMarker_get() -> str:
    """Attribute name marking nodes that belong in the page head"""
    return appsettings.directiveTag_make("bound")


def style_bind(source_path: str, css: str, bind_type: StyleBindType, context: PipelineContext) -> TagNode:
    """
    Bind a compiled style to the fragment being compiled.

    Args:
        source_path: Component that owns the style
        css: Compiled style text
        bind_type: Bind mode declared by the component
        context: Context of the component's template

    Returns:
        The <style> or <link> element appended to the fragment
    """
    if bind_type == StyleBindType.LINK:
        href = context.pipeline.resource_link(ResourceType.CSS, css, source_path)
        node = TagNode('link', {'rel': 'stylesheet', 'href': href})
        LOG(f"Linked style of {source_path} as {href}", level=2)
    else:
        node = TagNode('style')
        node.child_append(TextNode(css))
        LOG(f"Inlined style of {source_path}", level=2)

    node.attribute_set(bindMarker_get(), None)
    context.fragment.dom.child_append(node)
    return node
