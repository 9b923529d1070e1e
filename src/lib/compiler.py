"""
Directive compiler for pagesmith

Resolves directive nodes in a (cloned) fragment tree, in place, against a
PipelineContext. After compilation the tree holds no directive nodes and
every embedded expression has been replaced by its value.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set, Tuple

from ..config import appsettings
from ..models.fragment import Fragment, FragmentContext, PipelineContext
from ..models.scope import Scope
from .backend import resPath_resolve
from .dom import (
    CommentNode,
    ComponentRefNode,
    ContentNode,
    DocumentNode,
    FragmentRefNode,
    ImportNode,
    Node,
    NodeWithChildren,
    ReferenceNode,
    SlotNode,
    TagNode,
    TextNode,
    VarNode,
    document_createFromChildren,
    nodes_find,
)
from .errors import ResourceFormatError, SlotResolutionError, StructuralError
from .evaluator import scope_compose, value_stringify
from .log import LOG


@dataclass(frozen=True)
class ImportDefinition:
    """An alias registered by <m-import>"""
    alias: str
    res_path: str
    component: bool


@dataclass
class CompileState:
    """
    Bookkeeping for one html_compile() call. Not shared with nested compiles.

    Attributes:
        context: Context of the fragment being compiled
        imports: Alias -> import definition, local to this fragment
        slots_filled: Slot names already resolved in this template
    """
    context: PipelineContext
    imports: Dict[str, ImportDefinition] = field(default_factory=dict)
    slots_filled: Set[str] = field(default_factory=set)

    @property
    def res_path(self) -> str:
        return self.context.fragment.path


def blank_is(node: Node) -> bool:
    """True for whitespace-only text and comments"""
    if isinstance(node, TextNode):
        return node.whitespace_is()
    return isinstance(node, CommentNode)


class Compiler:
    """
    Compiles directive markup into plain markup

    Responsibilities:
    - Register <m-import> aliases and turn aliased tags into references
    - Evaluate <m-var> declarations into the scope of later siblings
    - Include fragments and instantiate components through the pipeline
    - Fill <m-slot> placeholders from caller content or their defaults
    - Evaluate expressions in text and attributes

    Traversal is preorder and depth-first. A node rewritten into another
    directive (an aliased tag) or into uncompiled content (slot defaults)
    is visited again; content that arrives already compiled (included
    fragments, caller-supplied slot content) is skipped over.
    """

    def html_compile(self, fragment: Fragment, context: PipelineContext) -> Fragment:
        """
        Compile a fragment tree in place.

        Args:
            fragment: Fragment to compile (a clone owned by the caller)
            context: Resolution context for this fragment

        Returns:
            The same fragment, now directive-free
        """
        LOG(f"Compiling {fragment.path}", level=3)
        state = CompileState(context=context)
        self.imports_register(fragment.dom, state)
        self.children_compile(fragment.dom, context.fragment_context.scope, state)
        return fragment

    def children_compile(self, parent: NodeWithChildren, scope: Scope, state: CompileState) -> None:
        """
        Compile the children of ``parent`` in document order.

        The scope is threaded through the loop, so a declaration only
        affects the siblings that follow it (and their descendants).
        """
        node = parent.first_child
        while node is not None:
            node, scope = self.node_compile(node, scope, state)

    def node_compile(self, node: Node, scope: Scope, state: CompileState) -> Tuple[Optional[Node], Scope]:
        """
        Compile a single node.

        Args:
            node: Node to compile
            scope: Scope visible at this node
            state: Per-call state

        Returns:
            The next node to visit and the scope for it
        """
        if isinstance(node, TextNode):
            self.text_compile(node, scope, state)
            return node.next_sibling, scope

        if isinstance(node, ImportNode):
            return self.directive_unwrap(node), scope

        if isinstance(node, VarNode):
            return self.var_compile(node, scope, state)

        if isinstance(node, ReferenceNode):
            return self.reference_compile(node, scope, state)

        if isinstance(node, SlotNode):
            return self.slot_compile(node, scope, state)

        if isinstance(node, ContentNode):
            if not isinstance(node.parent, ReferenceNode):
                raise StructuralError(
                    f"<{node.tag_name}> must be a direct child of a fragment or component reference in {state.res_path}"
                )
            # consumed by the enclosing reference; only its contents are compiled here
            self.children_compile(node, scope, state)
            return node.next_sibling, scope

        if isinstance(node, TagNode):
            definition = state.imports.get(node.tag_name)
            if definition is not None:
                return self.alias_expand(node, definition), scope
            self.attributes_compile(node, scope, state)
            self.children_compile(node, scope, state)
            return node.next_sibling, scope

        # comments, CDATA sections and processing instructions pass through
        return node.next_sibling, scope

    # Imports

    def imports_register(self, dom: DocumentNode, state: CompileState) -> None:
        """
        Register every <m-import> of the fragment before compiling it.

        Each import is resolved eagerly, so a missing resource fails the
        compile even if the alias is never used.

        Raises:
            ResourceNotFound: If an imported resource does not exist
            ResourceFormatError: If an import lacks src/as, or an alias is declared twice
        """
        pipeline = state.context.pipeline
        imports = [node for node in nodes_find(dom, lambda candidate: isinstance(candidate, ImportNode), deep=True)
                   if isinstance(node, ImportNode)]
        for node in imports:
            if not node.src or not node.alias:
                raise ResourceFormatError(f"<{node.tag_name}> requires both src and as", state.res_path)
            if node.alias in state.imports:
                raise ResourceFormatError(f"Import alias '{node.alias}' declared twice", state.res_path)

            res_path = resPath_resolve(state.res_path, node.src)
            if node.component_is:
                pipeline.component_preload(res_path)
            else:
                pipeline.fragment_preload(res_path)

            state.imports[node.alias] = ImportDefinition(node.alias, res_path, node.component_is)
            LOG(f"Imported {res_path} as <{node.alias}>", level=3)

    def alias_expand(self, node: TagNode, definition: ImportDefinition) -> Node:
        """Rewrite <alias ...> into the matching reference node and return it"""
        ref_class = ComponentRefNode if definition.component else FragmentRefNode
        attributes = {name: value for name, value in node.attributes.items() if name != 'src'}
        reference = ref_class(definition.alias, attributes)
        reference.children_append(node.children)
        node.self_replace(reference)
        return reference

    def directive_unwrap(self, node: TagNode) -> Optional[Node]:
        """
        Remove a declaration directive, keeping anything it wraps.

        ``<m-var x="1">`` written without a closing tag swallows the
        following markup as its children; those are put back in its place.
        """
        next_node = node.first_child or node.next_sibling
        node.self_replace(*list(node.children))
        return next_node

    # Variables

    def var_compile(self, node: VarNode, scope: Scope, state: CompileState) -> Tuple[Optional[Node], Scope]:
        """Evaluate each attribute of <m-var> and push the results as a new scope layer"""
        values: Dict[str, Any] = {}
        for name, value in node.attributes.items():
            values[name] = self.value_compile(value, scope, state)
        LOG(f"Declared {', '.join(values) or 'nothing'} in {state.res_path}", level=3)

        return self.directive_unwrap(node), scope.layer_push('var', values)

    # References

    def reference_compile(self, node: ReferenceNode, scope: Scope, state: CompileState) -> Tuple[Optional[Node], Scope]:
        """
        Replace <m-fragment>/<m-component> with the compiled resource.

        Parameters are evaluated and the supplied content is compiled in
        the caller's scope first; the callee then sees only its parameters
        and slot contents.
        """
        next_node = node.next_sibling
        res_path = self.reference_resolve(node, state)
        parameters = {name: self.value_compile(value, scope, state) for name, value in node.parameters_get().items()}

        self.children_compile(node, scope, state)
        slot_contents = self.slotContents_extract(node, state)

        fragment_context = FragmentContext(
            slot_contents=slot_contents,
            parameters=parameters,
            scope=scope_compose(parameters),
        )

        pipeline = state.context.pipeline
        if isinstance(node, ComponentRefNode):
            LOG(f"Instantiating component {res_path} in {state.res_path}", level=2)
            compiled = pipeline.component_compile(res_path, fragment_context)
        else:
            LOG(f"Including fragment {res_path} in {state.res_path}", level=2)
            compiled = pipeline.fragment_compile(res_path, fragment_context)

        node.self_replace(*list(compiled.dom.children))
        return next_node, scope

    def reference_resolve(self, node: ReferenceNode, state: CompileState) -> str:
        src = node.src.strip()
        if not src:
            raise ResourceFormatError(f"<{node.tag_name}> has no src", state.res_path)
        definition = state.imports.get(src.lower())
        if definition is not None:
            return definition.res_path
        return resPath_resolve(state.res_path, src)

    def slotContents_extract(self, node: ReferenceNode, state: CompileState) -> Dict[str, DocumentNode]:
        """
        Partition the (compiled) children of a reference into slot contents.

        <m-content name="x"> children go to slot x; any other children go to
        the default slot unless they are all whitespace or comments.

        Raises:
            SlotResolutionError: If two supplies target the same slot
        """
        default_name = appsettings.default_slot_name
        contents: Dict[str, DocumentNode] = {}
        loose = []

        for child in list(node.children):
            if isinstance(child, ContentNode):
                name = child.slot_name
                if name in contents:
                    raise SlotResolutionError(f"Content supplied twice for slot '{name}'", name, state.res_path)
                contents[name] = document_createFromChildren(child)
                child.detach()
            else:
                loose.append(child)

        if not all(blank_is(child) for child in loose):
            if default_name in contents:
                raise SlotResolutionError(
                    f"Content supplied twice for slot '{default_name}'", default_name, state.res_path
                )
            dom = DocumentNode()
            dom.children_append(loose)
            contents[default_name] = dom

        return contents

    # Slots

    def slot_compile(self, node: SlotNode, scope: Scope, state: CompileState) -> Tuple[Optional[Node], Scope]:
        """
        Fill a slot from the caller's content, or fall back to its children.

        Supplied content is already compiled and is inserted as-is (cloned,
        so the context stays reusable). Fallback children are spliced in
        place and visited next, in this template's scope.

        Raises:
            SlotResolutionError: On a duplicate slot name, or a required slot with nothing to show
        """
        name = node.slot_name
        if name in state.slots_filled:
            raise SlotResolutionError(f"Slot '{name}' declared twice", name, state.res_path)
        state.slots_filled.add(name)

        next_node = node.next_sibling
        slot_contents = state.context.fragment_context.slot_contents

        if name in slot_contents:
            LOG(f"Filling slot '{name}' in {state.res_path}", level=3)
            replacements = [child.clone() for child in slot_contents[name].children]
            node.self_replace(*replacements)
            return next_node, scope

        if node.children:
            first = node.first_child
            node.self_replace(*list(node.children))
            return first, scope

        if node.required:
            raise SlotResolutionError(f"Required slot '{name}' has no content", name, state.res_path)

        node.self_replace()
        return next_node, scope

    # Expressions

    def text_compile(self, node: TextNode, scope: Scope, state: CompileState) -> None:
        pipeline = state.context.pipeline
        text = node.text
        if not pipeline.evaluator.expression_detect(text):
            return
        stripped = text.strip()
        leading = text[:len(text) - len(text.lstrip())]
        trailing = text[len(text.rstrip()):]
        node.text = leading + value_stringify(pipeline.expression_compile(stripped, scope)) + trailing

    def attributes_compile(self, node: TagNode, scope: Scope, state: CompileState) -> None:
        """
        Evaluate expression attributes.

        None and False remove the attribute, True leaves it valueless,
        anything else is stringified.
        """
        pipeline = state.context.pipeline
        for name, value in list(node.attributes.items()):
            if value is None or not pipeline.evaluator.expression_detect(value):
                continue
            result = pipeline.expression_compile(value, scope)
            if result is None or result is False:
                node.attribute_delete(name)
            elif result is True:
                node.attribute_set(name, None)
            else:
                node.attribute_set(name, value_stringify(result))

    def value_compile(self, value: Optional[str], scope: Scope, state: CompileState) -> Any:
        """Raw value of a parameter or declaration attribute"""
        if value is None:
            return True
        return state.context.pipeline.expression_compile(value, scope)
