"""
Output formatting

The pipeline formats each page twice: once as a tree, right after page
assembly, and once as text, right after serialization. Any object with
``tree_format(root)`` and ``text_format(html)`` can be handed to the
pipeline; StandardHtmlFormatter is the default.

Modes:
    none     - output exactly as compiled
    minimize - collapse whitespace, drop blank text between blocks
    pretty   - minimize, then indent block structure
"""

import re
from typing import Optional, Protocol

from ..config import appsettings
from .dom import (
    CommentNode,
    DocumentNode,
    Node,
    NodeWithChildren,
    ProcessingInstructionNode,
    TagNode,
    TextNode,
)


# Elements whose whitespace is significant
PRESERVE_ELEMENTS = frozenset({'pre', 'textarea', 'script', 'style'})

BLOCK_ELEMENTS = frozenset({
    'html', 'head', 'body', 'title', 'meta', 'link', 'style', 'script', 'base',
    'address', 'article', 'aside', 'blockquote', 'details', 'dialog', 'dd', 'div',
    'dl', 'dt', 'fieldset', 'figcaption', 'figure', 'footer', 'form', 'h1', 'h2',
    'h3', 'h4', 'h5', 'h6', 'header', 'hgroup', 'hr', 'li', 'main', 'nav', 'ol',
    'p', 'pre', 'section', 'table', 'thead', 'tbody', 'tfoot', 'tr', 'td', 'th',
    'ul', 'template', 'noscript',
})

_WHITESPACE = re.compile(r'\s+')


class HtmlFormatter(Protocol):
    def tree_format(self, root: DocumentNode) -> None:
        ...

    def text_format(self, html: str) -> str:
        ...


class StandardHtmlFormatter:
    """
    Whitespace formatter.

    Args:
        mode: 'pretty', 'minimize' or 'none' (defaults to settings)
        indent: Indent unit for pretty mode (defaults to settings)
    """

    def __init__(self, mode: Optional[str] = None, indent: Optional[str] = None) -> None:
        self.mode = mode or appsettings.formatter_mode
        self.indent = indent if indent is not None else appsettings.formatter_indent

    def tree_format(self, root: DocumentNode) -> None:
        if self.mode == 'none':
            return
        self.whitespace_collapse(root)
        if self.mode == 'pretty':
            self.structure_indent(root, -1)

    def text_format(self, html: str) -> str:
        if self.mode == 'none':
            return html
        return html.strip() + '\n'

    def whitespace_collapse(self, parent: NodeWithChildren) -> None:
        for child in list(parent.children):
            if isinstance(child, TextNode):
                if child.whitespace_is() and blockBoundary_is(child.prev_sibling) and blockBoundary_is(child.next_sibling):
                    child.detach()
                else:
                    child.text = _WHITESPACE.sub(' ', child.text)
            elif isinstance(child, TagNode):
                if child.tag_name not in PRESERVE_ELEMENTS:
                    self.whitespace_collapse(child)
            elif isinstance(child, NodeWithChildren):
                self.whitespace_collapse(child)

    def structure_indent(self, parent: NodeWithChildren, depth: int) -> None:
        """Put each child of a block-only container on its own indented line"""
        if isinstance(parent, TagNode) and parent.tag_name in PRESERVE_ELEMENTS:
            return
        children = list(parent.children)
        if not children or not all(blockBoundary_is(child) for child in children):
            return

        for child in children:
            if isinstance(child, NodeWithChildren):
                self.structure_indent(child, depth + 1)

        if isinstance(parent, DocumentNode):
            for child in children[1:]:
                child.sibling_prepend(TextNode('\n'))
            return

        inner = '\n' + self.indent * (depth + 1)
        for child in children:
            child.sibling_prepend(TextNode(inner))
        parent.child_append(TextNode('\n' + self.indent * depth))


def blockBoundary_is(node: Optional[Node]) -> bool:
    """True for nothing, block elements, comments and declarations"""
    if node is None:
        return True
    if isinstance(node, TagNode):
        return node.tag_name in BLOCK_ELEMENTS
    return isinstance(node, (CommentNode, ProcessingInstructionNode))
