"""
Document model for pagesmith

Tree of markup nodes with parent/sibling linkage, structural mutation
primitives, cloning, serialization and search utilities.

Ownership rules:
    - A node sits in exactly one parent's ``children`` list, or in none
    - ``parent``/``prev_sibling``/``next_sibling`` are back-references that
      mirror the owning list and are refreshed whenever that list mutates
    - A DocumentNode is always a root: it can never become a child or a
      sibling of another node

Directive elements (m-fragment, m-component, m-slot, m-content, m-var,
m-import) are TagNode subclasses so that everything generic about tags
(attributes, cloning, serialization) applies to them unchanged.

Example:
    >>> root = DocumentNode()
    >>> div = TagNode('div', {'class': 'box'})
    >>> root.child_append(div)
    >>> div.child_append(TextNode('Hello'))
    >>> root.html_generate()
    '<div class="box">Hello</div>'
"""

import html
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional

from ..config import appsettings
from .errors import StructuralError


NodePairCallback = Callable[['Node', 'Node'], None]
NodeMatcher = Callable[['Node'], bool]
TagMatcher = Callable[['TagNode'], bool]

# Elements that never have children or a closing tag
VOID_ELEMENTS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'param', 'source', 'track', 'wbr',
})

# Elements whose text content is emitted without escaping
RAW_TEXT_ELEMENTS = frozenset({'script', 'style'})


class NodeType(Enum):
    """Kind tag carried by every node"""
    DOCUMENT = "document"
    TAG = "tag"
    TEXT = "text"
    COMMENT = "comment"
    CDATA = "cdata"
    PROCESSING_INSTRUCTION = "processing_instruction"


class Node:
    """
    Base class of all tree nodes.

    Attributes:
        parent: Owning node, or None when detached
        prev_sibling: Node immediately before this one in parent.children
        next_sibling: Node immediately after this one in parent.children
    """

    node_type: NodeType

    def __init__(self) -> None:
        self.parent: Optional['NodeWithChildren'] = None
        self.prev_sibling: Optional['Node'] = None
        self.next_sibling: Optional['Node'] = None

    # Cloning

    def clone(self, deep: bool = True, on_node_pair: Optional[NodePairCallback] = None) -> 'Node':
        """
        Create a structurally independent copy of this node.

        The copy is detached. When ``deep`` is set, children are cloned
        recursively. ``on_node_pair`` is called once per (original, copy)
        pair, parents before their children.

        Args:
            deep: Clone the whole subtree instead of the node alone
            on_node_pair: Optional callback receiving (original, copy)

        Returns:
            The copied node
        """
        copy = self._copy()
        if on_node_pair is not None:
            on_node_pair(self, copy)
        if deep and isinstance(self, NodeWithChildren) and isinstance(copy, NodeWithChildren):
            for child in self.children:
                copy.child_append(child.clone(True, on_node_pair))
        return copy

    def _copy(self) -> 'Node':
        raise NotImplementedError

    # Structure

    def detach(self) -> None:
        """
        Remove this node from its parent and neighbours.

        Detaching a node that has no parent is a no-op.
        """
        parent = self.parent
        if parent is not None:
            index = parent._index_of(self)
            if index is not None:
                del parent.children[index]

        if self.prev_sibling is not None:
            self.prev_sibling.next_sibling = self.next_sibling
        if self.next_sibling is not None:
            self.next_sibling.prev_sibling = self.prev_sibling

        self.prev_sibling = None
        self.next_sibling = None
        self.parent = None

    def sibling_append(self, node: 'Node') -> None:
        """
        Insert ``node`` immediately after this node.

        Raises:
            StructuralError: If this node is a document root, is detached,
                             or ``node`` cannot be placed here
        """
        parent = self._siblingInsert_check(node, "append", "after")
        node.detach()
        index = parent._index_of(self)
        parent._child_insert(index + 1, node)

    def sibling_prepend(self, node: 'Node') -> None:
        """
        Insert ``node`` immediately before this node.

        Raises:
            StructuralError: If this node is a document root, is detached,
                             or ``node`` cannot be placed here
        """
        parent = self._siblingInsert_check(node, "prepend", "before")
        node.detach()
        index = parent._index_of(self)
        parent._child_insert(index, node)

    def _siblingInsert_check(self, node: 'Node', verb: str, where: str) -> 'NodeWithChildren':
        if isinstance(self, DocumentNode):
            raise StructuralError(f"Attempting to {verb} {node.node_type.value} {where} DocumentNode")
        if node is self:
            raise StructuralError(f"Attempting to {verb} a node {where} itself")
        if self.parent is None:
            raise StructuralError(
                f"Attempting to {verb} {node.node_type.value} {where} a detached {self.node_type.value}"
            )
        self.parent._child_check(node)
        return self.parent

    def self_replace(self, *replacements: 'Node') -> None:
        """
        Substitute this node in place by an ordered run of nodes.

        The surrounding siblings are preserved and this node ends up
        detached, keeping its own children. Passing no replacements simply
        removes the node.

        Raises:
            StructuralError: If this node has no parent
        """
        if self.parent is None:
            raise StructuralError(f"Cannot replace a detached {self.node_type.value}")

        anchor: Node = self
        for node in replacements:
            if node is self:
                continue
            anchor.sibling_append(node)
            anchor = node

        self.detach()

    def position_swap(self, other: 'Node') -> None:
        """
        Exchange tree positions with ``other``.

        Each node keeps its own children.

        Raises:
            StructuralError: If either node is detached, or one contains the other
        """
        if other is self:
            return
        if self.parent is None or other.parent is None:
            raise StructuralError("Cannot swap a detached node")
        if self.ancestor_is(other) or other.ancestor_is(self):
            raise StructuralError("Cannot swap a node with its own ancestor")

        parent_a, parent_b = self.parent, other.parent
        index_a, index_b = parent_a._index_of(self), parent_b._index_of(other)
        parent_a.children[index_a] = other
        parent_b.children[index_b] = self
        self.parent, other.parent = parent_b, parent_a

        parent_a._links_refresh()
        if parent_b is not parent_a:
            parent_b._links_refresh()

    def ancestor_is(self, node: 'Node') -> bool:
        """True if ``node`` is a (transitive) parent of this node"""
        current = self.parent
        while current is not None:
            if current is node:
                return True
            current = current.parent
        return False

    # Content

    def text_extract(self) -> str:
        """Concatenated text of this node and its descendants"""
        return ""

    def html_generate(self) -> str:
        """Serialize this node (and its subtree) to markup"""
        raise NotImplementedError


class NodeWithChildren(Node):
    """
    A node that exclusively owns an ordered list of children.
    """

    def __init__(self) -> None:
        super().__init__()
        self.children: List[Node] = []

    @property
    def first_child(self) -> Optional[Node]:
        return self.children[0] if self.children else None

    @property
    def last_child(self) -> Optional[Node]:
        return self.children[-1] if self.children else None

    def child_append(self, child: Node) -> None:
        """
        Make ``child`` the last child of this node.

        If ``child`` already has a parent it is detached first, so the same
        instance never sits in two places.

        Raises:
            StructuralError: If ``child`` is a document root or an ancestor of this node
        """
        self._child_check(child)
        child.detach()
        self._child_insert(len(self.children), child)

    def child_prepend(self, child: Node) -> None:
        """
        Make ``child`` the first child of this node.

        Raises:
            StructuralError: If ``child`` is a document root or an ancestor of this node
        """
        self._child_check(child)
        child.detach()
        self._child_insert(0, child)

    def children_append(self, children: List[Node]) -> None:
        """Append several nodes in order; the list may be this node's own children"""
        for child in list(children):
            self.child_append(child)

    def children_clear(self) -> None:
        """Detach every child"""
        for child in list(self.children):
            child.detach()

    def childTags_get(self) -> List['TagNode']:
        """Direct children that are tags"""
        return [child for child in self.children if isinstance(child, TagNode)]

    def text_extract(self) -> str:
        return ''.join(child.text_extract() for child in self.children)

    def childrenHtml_generate(self) -> str:
        return ''.join(child.html_generate() for child in self.children)

    def _child_check(self, child: Node) -> None:
        if isinstance(child, DocumentNode):
            raise StructuralError(f"Attempting to insert DocumentNode into {self.node_type.value}")
        if child is self or self.ancestor_is(child):
            raise StructuralError("Attempting to insert a node into its own subtree")

    def _child_insert(self, index: int, child: Node) -> None:
        self.children.insert(index, child)
        child.parent = self

        prev_node = self.children[index - 1] if index > 0 else None
        next_node = self.children[index + 1] if index + 1 < len(self.children) else None

        child.prev_sibling = prev_node
        child.next_sibling = next_node
        if prev_node is not None:
            prev_node.next_sibling = child
        if next_node is not None:
            next_node.prev_sibling = child

    def _index_of(self, child: Node) -> Optional[int]:
        for index, node in enumerate(self.children):
            if node is child:
                return index
        return None

    def _links_refresh(self) -> None:
        """Recompute sibling links from the owning list"""
        count = len(self.children)
        for index, child in enumerate(self.children):
            child.parent = self
            child.prev_sibling = self.children[index - 1] if index > 0 else None
            child.next_sibling = self.children[index + 1] if index + 1 < count else None


class DocumentNode(NodeWithChildren):
    """Root of a tree. Exactly one per tree, never a child."""

    node_type = NodeType.DOCUMENT

    def _copy(self) -> 'DocumentNode':
        return DocumentNode()

    def html_generate(self) -> str:
        return self.childrenHtml_generate()


class TagNode(NodeWithChildren):
    """
    An element with a tag name and an attribute mapping.

    Attribute values are strings, or None for valueless (boolean) attributes.
    """

    node_type = NodeType.TAG

    def __init__(self, tag_name: str, attributes: Optional[Dict[str, Optional[str]]] = None) -> None:
        super().__init__()
        self.tag_name = tag_name
        self.attributes: Dict[str, Optional[str]] = dict(attributes or {})

    def _copy(self) -> 'TagNode':
        # bypass subclass constructors; all directive state lives in attributes
        node = type(self).__new__(type(self))
        TagNode.__init__(node, self.tag_name, dict(self.attributes))
        return node

    def attribute_has(self, name: str) -> bool:
        return name in self.attributes

    def attribute_get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    def attribute_set(self, name: str, value: Optional[str]) -> None:
        self.attributes[name] = value

    def attribute_delete(self, name: str) -> None:
        self.attributes.pop(name, None)

    def html_generate(self) -> str:
        parts = [f"<{self.tag_name}"]
        for name, value in self.attributes.items():
            if value is None:
                parts.append(f" {name}")
            else:
                parts.append(f' {name}="{html.escape(value, quote=True)}"')
        parts.append(">")

        if self.tag_name in VOID_ELEMENTS and not self.children:
            return ''.join(parts)

        parts.append(self.childrenHtml_generate())
        parts.append(f"</{self.tag_name}>")
        return ''.join(parts)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.tag_name} {self.attributes!r}>"


class TextNode(Node):
    """Character data. Stored unescaped; escaped on serialization."""

    node_type = NodeType.TEXT

    def __init__(self, text: str = "") -> None:
        super().__init__()
        self.text = text

    def _copy(self) -> 'TextNode':
        return TextNode(self.text)

    def text_extract(self) -> str:
        return self.text

    def whitespace_is(self) -> bool:
        return not self.text.strip()

    def html_generate(self) -> str:
        parent = self.parent
        if isinstance(parent, CDATANode):
            return self.text
        if isinstance(parent, TagNode) and parent.tag_name in RAW_TEXT_ELEMENTS:
            return self.text
        return html.escape(self.text, quote=False)

    def __repr__(self) -> str:
        return f"<TextNode {self.text!r}>"


class CommentNode(Node):
    """An HTML comment"""

    node_type = NodeType.COMMENT

    def __init__(self, text: str = "") -> None:
        super().__init__()
        self.text = text

    def _copy(self) -> 'CommentNode':
        return CommentNode(self.text)

    def html_generate(self) -> str:
        return f"<!--{self.text}-->"


class CDATANode(NodeWithChildren):
    """A CDATA section; its text lives in child TextNodes"""

    node_type = NodeType.CDATA

    def _copy(self) -> 'CDATANode':
        return CDATANode()

    def html_generate(self) -> str:
        return f"<![CDATA[{self.childrenHtml_generate()}]]>"


class ProcessingInstructionNode(Node):
    """
    A processing instruction or declaration.

    ``data`` is the full text between the angle brackets, e.g.
    ``!DOCTYPE html`` (name ``!doctype``) or ``?xml version="1.0"?``
    (name ``?xml``).
    """

    node_type = NodeType.PROCESSING_INSTRUCTION

    def __init__(self, name: str, data: str) -> None:
        super().__init__()
        self.name = name
        self.data = data

    def _copy(self) -> 'ProcessingInstructionNode':
        return ProcessingInstructionNode(self.name, self.data)

    def html_generate(self) -> str:
        return f"<{self.data}>"


# ---------------------------------------------------------------------------
# Directive nodes
# ---------------------------------------------------------------------------

class DirectiveNode(TagNode):
    """
    Base class for compile-time directive elements.

    Subclasses set ``kind``; the tag name is the configured directive
    prefix plus the kind (``m-fragment``, ``m-slot``, ...).
    """

    kind: str = ""

    def __init__(self, attributes: Optional[Dict[str, Optional[str]]] = None) -> None:
        super().__init__(appsettings.directiveTag_make(self.kind), attributes)


class ReferenceNode(DirectiveNode):
    """Shared behaviour of m-fragment and m-component"""

    def __init__(self, src: str, attributes: Optional[Dict[str, Optional[str]]] = None) -> None:
        super().__init__(attributes)
        self.attributes['src'] = src

    @property
    def src(self) -> str:
        return self.attributes.get('src') or ""

    def parameters_get(self) -> Dict[str, Optional[str]]:
        """Raw (unevaluated) attributes passed to the included resource"""
        return {name: value for name, value in self.attributes.items() if name != 'src'}


class FragmentRefNode(ReferenceNode):
    """<m-fragment src="..."> - include a fragment"""
    kind = "fragment"


class ComponentRefNode(ReferenceNode):
    """<m-component src="..."> - instantiate a component"""
    kind = "component"


class SlotNode(DirectiveNode):
    """<m-slot name="..."> - placeholder filled by caller content; children are the fallback"""

    kind = "slot"

    def __init__(self, name: Optional[str] = None, attributes: Optional[Dict[str, Optional[str]]] = None) -> None:
        super().__init__(attributes)
        if name is not None:
            self.attributes['name'] = name

    @property
    def slot_name(self) -> str:
        return self.attributes.get('name') or appsettings.default_slot_name

    @property
    def required(self) -> bool:
        return 'required' in self.attributes


class ContentNode(DirectiveNode):
    """<m-content name="..."> - content supplied by a caller for a named slot"""

    kind = "content"

    def __init__(self, name: Optional[str] = None, attributes: Optional[Dict[str, Optional[str]]] = None) -> None:
        super().__init__(attributes)
        if name is not None:
            self.attributes['name'] = name

    @property
    def slot_name(self) -> str:
        return self.attributes.get('name') or appsettings.default_slot_name


class VarNode(DirectiveNode):
    """<m-var name="expression" ...> - declare scoped variables"""

    kind = "var"


class ImportNode(DirectiveNode):
    """
    <m-import src="..." as="alias" [fragment|component]>

    Registers an alias for a fragment or component. The kind defaults to
    fragment when neither flag is present.
    """

    kind = "import"

    def __init__(self, src: str, alias: str, component: bool = False,
                 attributes: Optional[Dict[str, Optional[str]]] = None) -> None:
        super().__init__(attributes)
        self.attributes['src'] = src
        self.attributes['as'] = alias
        if component:
            self.attributes['component'] = None
        elif 'component' not in self.attributes:
            self.attributes.setdefault('fragment', None)

    @property
    def src(self) -> str:
        return self.attributes.get('src') or ""

    @property
    def alias(self) -> str:
        return (self.attributes.get('as') or "").lower()

    @property
    def component_is(self) -> bool:
        return 'component' in self.attributes


DIRECTIVE_CLASSES: Dict[str, type] = {
    cls.kind: cls
    for cls in (FragmentRefNode, ComponentRefNode, SlotNode, ContentNode, VarNode, ImportNode)
}


def directive_create(tag_name: str, attributes: Dict[str, Optional[str]]) -> Optional[DirectiveNode]:
    """
    Build the directive node for a tag name, if it names a directive.

    Args:
        tag_name: Lower-case tag name from the markup
        attributes: Parsed attributes

    Returns:
        A DirectiveNode subclass instance, or None for ordinary tags
    """
    kind = appsettings.directiveKind_extract(tag_name)
    if kind is None or kind not in DIRECTIVE_CLASSES:
        return None
    cls = DIRECTIVE_CLASSES[kind]
    node = cls.__new__(cls)
    TagNode.__init__(node, tag_name, attributes)
    return node


# ---------------------------------------------------------------------------
# Traversal and search
# ---------------------------------------------------------------------------

def dom_walk(node: Node, visitor: Callable[[Node], None]) -> None:
    """Preorder depth-first visit of ``node`` and its descendants"""
    visitor(node)
    if isinstance(node, NodeWithChildren):
        for child in list(node.children):
            dom_walk(child, visitor)


def dom_iterate(node: Node) -> Iterator[Node]:
    """Generator form of dom_walk"""
    yield node
    if isinstance(node, NodeWithChildren):
        for child in list(node.children):
            yield from dom_iterate(child)


def node_find(parent: NodeWithChildren, matcher: NodeMatcher, deep: bool = False) -> Optional[Node]:
    """First child (or descendant when ``deep``) accepted by ``matcher``"""
    for child in parent.children:
        if matcher(child):
            return child
        if deep and isinstance(child, NodeWithChildren):
            match = node_find(child, matcher, True)
            if match is not None:
                return match
    return None


def nodes_find(parent: NodeWithChildren, matcher: NodeMatcher, deep: bool = False,
               matches: Optional[List[Node]] = None) -> List[Node]:
    """All children (or descendants when ``deep``) accepted by ``matcher``, in document order"""
    if matches is None:
        matches = []
    for child in parent.children:
        if matcher(child):
            matches.append(child)
        if deep and isinstance(child, NodeWithChildren):
            nodes_find(child, matcher, True, matches)
    return matches


def tag_find(parent: NodeWithChildren, matcher: TagMatcher, deep: bool = False) -> Optional[TagNode]:
    found = node_find(parent, lambda node: isinstance(node, TagNode) and matcher(node), deep)
    return found if isinstance(found, TagNode) else None


def tags_find(parent: NodeWithChildren, matcher: TagMatcher, deep: bool = False) -> List[TagNode]:
    found = nodes_find(parent, lambda node: isinstance(node, TagNode) and matcher(node), deep)
    return [node for node in found if isinstance(node, TagNode)]


def tags_findByPath(root: NodeWithChildren, matchers: List[TagMatcher]) -> List[TagNode]:
    """
    Find tags through a chain of matchers.

    The first matcher is applied to the children of ``root``; the children
    of every match are searched with the next matcher, and so on. Matches
    of the last matcher are returned.

    Args:
        root: Node to start from
        matchers: One matcher per structural level

    Returns:
        Terminal matches in document order

    Example:
        >>> tags_findByPath(dom, [lambda t: t.tag_name == 'html',
        ...                       lambda t: t.tag_name == 'head'])
    """
    matches: List[TagNode] = []
    _tags_findByPathAt(root, matchers, 0, matches)
    return matches


def _tags_findByPathAt(root: NodeWithChildren, matchers: List[TagMatcher], offset: int,
                       matches: List[TagNode]) -> None:
    if offset >= len(matchers):
        return
    matcher = matchers[offset]
    for child in root.children:
        if isinstance(child, TagNode) and matcher(child):
            if offset == len(matchers) - 1:
                matches.append(child)
            else:
                _tags_findByPathAt(child, matchers, offset + 1, matches)


def tags_findTopLevel(parent: NodeWithChildren, matcher: TagMatcher,
                      matches: Optional[List[TagNode]] = None) -> List[TagNode]:
    """Like tags_find(deep=True), but does not descend into matching tags"""
    if matches is None:
        matches = []
    for child in parent.children:
        if isinstance(child, TagNode) and matcher(child):
            matches.append(child)
        elif isinstance(child, NodeWithChildren):
            tags_findTopLevel(child, matcher, matches)
    return matches


def document_createFromChildren(parent: NodeWithChildren) -> DocumentNode:
    """Move all children of ``parent`` into a new standalone DocumentNode"""
    dom = DocumentNode()
    dom.children_append(parent.children)
    return dom
