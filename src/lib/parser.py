"""
Resource parser for pagesmith markup

Turns raw resource text into the document model.

The parser operates in two layers:
1. Tree building: html.parser events are folded into DocumentNode trees,
   with directive elements (m-fragment, m-slot, ...) created as their
   directive node kinds
2. Resource shaping: a fragment is the tree as-is; a component is split
   into its <template>, <script> and <style> parts

Key features:
- Void elements and self-closing custom elements (<m-slot name="x" />)
- Comments, CDATA sections, processing instructions and doctype
- Stray end tags are ignored; unclosed tags are closed at end of input

Example:
    >>> parser = ResourceParser()
    >>> fragment = parser.fragment_parse('index.html', '<p>Hello</p>')
    >>> fragment.dom.first_child.tag_name
    'p'
"""

from html.parser import HTMLParser
from typing import List, Optional, Tuple

from ..config import appsettings
from ..models.fragment import Component, ComponentScript, ComponentStyle, Fragment, StyleBindType
from .backend import resPath_resolve
from .dom import (
    VOID_ELEMENTS,
    CDATANode,
    CommentNode,
    DocumentNode,
    NodeWithChildren,
    ProcessingInstructionNode,
    TagNode,
    TextNode,
    directive_create,
    document_createFromChildren,
)
from .errors import ResourceFormatError
from .log import LOG


class TreeBuilder(HTMLParser):
    """
    HTMLParser subclass that builds a DocumentNode tree

    Tag and attribute names arrive lowercased, as HTML treats them
    case-insensitively. Parameters and m-var names are therefore
    referenced in lower case from expressions.

    Attributes:
        root: The document being built
        stack: Open elements, root first
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = DocumentNode()
        self.stack: List[NodeWithChildren] = [self.root]

    @property
    def current(self) -> NodeWithChildren:
        return self.stack[-1]

    def tag_create(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> TagNode:
        attributes = {name: value for name, value in attrs}
        return directive_create(tag, attributes) or TagNode(tag, attributes)

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        node = self.tag_create(tag, attrs)
        self.current.child_append(node)
        if tag not in VOID_ELEMENTS:
            self.stack.append(node)

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self.current.child_append(self.tag_create(tag, attrs))

    def handle_endtag(self, tag: str) -> None:
        for index in range(len(self.stack) - 1, 0, -1):
            node = self.stack[index]
            if isinstance(node, TagNode) and node.tag_name == tag:
                del self.stack[index:]
                return
        LOG(f"Ignoring stray end tag </{tag}>", level=3)

    def handle_data(self, data: str) -> None:
        last = self.current.last_child
        if isinstance(last, TextNode):
            last.text += data
        else:
            self.current.child_append(TextNode(data))

    def handle_comment(self, data: str) -> None:
        # newer HTMLParser versions report CDATA outside foreign content as a bogus comment
        if data.startswith('[CDATA[') and data.endswith(']]'):
            self.cdata_append(data[len('[CDATA['):-2])
        else:
            self.current.child_append(CommentNode(data))

    def handle_decl(self, decl: str) -> None:
        name = decl.split(None, 1)[0].lower() if decl.strip() else ''
        self.current.child_append(ProcessingInstructionNode(f"!{name}", f"!{decl}"))

    def handle_pi(self, data: str) -> None:
        name = data.split(None, 1)[0].rstrip('?').lower() if data.strip() else ''
        self.current.child_append(ProcessingInstructionNode(f"?{name}", f"?{data}"))

    def unknown_decl(self, data: str) -> None:
        if data.startswith('CDATA['):
            self.cdata_append(data[len('CDATA['):])
        else:
            LOG(f"Ignoring unknown declaration <![{data}]>", level=3)

    def cdata_append(self, text: str) -> None:
        cdata = CDATANode()
        cdata.child_append(TextNode(text))
        self.current.child_append(cdata)

    def document_build(self, text: str) -> DocumentNode:
        self.feed(text)
        self.close()
        return self.root


class ResourceParser:
    """
    Parses fragment and component resources.

    Component resources have this shape:

        <template> ... markup ... </template>
        <script> return {"title": title.upper()} </script>     (optional)
        <style bind="head|link"> ... css ... </style>          (optional)

    The script may instead reference an external script resource with
    ``<script src="card.py"></script>``.
    """

    def dom_parse(self, text: str) -> DocumentNode:
        """Parse markup text into a standalone tree"""
        return TreeBuilder().document_build(text)

    def fragment_parse(self, res_path: str, text: str) -> Fragment:
        """
        Parse a fragment resource.

        Args:
            res_path: Path the text was read from
            text: Raw markup

        Returns:
            Fragment owning the parsed tree
        """
        LOG(f"Parsing fragment {res_path}", level=3)
        return Fragment(path=res_path, dom=self.dom_parse(text))

    def component_parse(self, res_path: str, text: str) -> Component:
        """
        Parse a component resource.

        Args:
            res_path: Path the text was read from
            text: Raw markup with <template>, <script> and <style> parts

        Returns:
            Component with its template fragment, script and style

        Raises:
            ResourceFormatError: If the template is missing or a part is duplicated,
                                 or the style declares an unknown bind mode
        """
        LOG(f"Parsing component {res_path}", level=3)
        dom = self.dom_parse(text)

        templates = self.parts_get(dom, 'template', res_path)
        if not templates:
            raise ResourceFormatError("Component has no <template>", res_path)
        template = Fragment(path=res_path, dom=document_createFromChildren(templates[0]))

        script: Optional[ComponentScript] = None
        scripts = self.parts_get(dom, 'script', res_path)
        if scripts:
            src = scripts[0].attribute_get('src')
            if src:
                script = ComponentScript(src=resPath_resolve(res_path, src))
            else:
                script = ComponentScript(text=scripts[0].text_extract())

        style: Optional[ComponentStyle] = None
        styles = self.parts_get(dom, 'style', res_path)
        if styles:
            bind = (styles[0].attribute_get('bind') or appsettings.style_bind_default).lower()
            try:
                bind_type = StyleBindType(bind)
            except ValueError:
                raise ResourceFormatError(f"Unknown style bind mode '{bind}'", res_path) from None
            style = ComponentStyle(text=styles[0].text_extract(), bind_type=bind_type)

        return Component(path=res_path, template=template, script=script, style=style)

    def parts_get(self, dom: DocumentNode, tag_name: str, res_path: str) -> List[TagNode]:
        parts = [node for node in dom.childTags_get() if node.tag_name == tag_name]
        if len(parts) > 1:
            raise ResourceFormatError(f"Component has more than one <{tag_name}>", res_path)
        return parts
