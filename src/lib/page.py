"""
Page assembly

Normalizes a compiled fragment into a complete HTML document: one doctype,
one <html> with one <head> and one <body>, and every bound style hoisted
into the head.
"""

from typing import Set, Tuple

from .binder import bindMarker_get
from .dom import (
    DocumentNode,
    ProcessingInstructionNode,
    TagNode,
    nodes_find,
    tags_find,
    tags_findByPath,
)
from .log import LOG


def page_build(dom: DocumentNode) -> DocumentNode:
    """
    Turn ``dom`` into a full page, in place.

    Args:
        dom: Compiled page fragment

    Returns:
        The same DocumentNode
    """
    doctype_ensure(dom)
    html = html_ensure(dom)
    head = section_ensure(html, 'head', prepend=True)
    section_ensure(html, 'body', prepend=False)
    boundNodes_hoist(dom, head)
    return dom


def doctype_ensure(dom: DocumentNode) -> None:
    """Keep a single doctype, at the very start of the document"""
    doctypes = nodes_find(
        dom,
        lambda node: isinstance(node, ProcessingInstructionNode) and node.name == '!doctype',
        deep=True,
    )
    for node in doctypes:
        node.detach()
    doctype = doctypes[0] if doctypes else ProcessingInstructionNode('!doctype', '!DOCTYPE html')
    dom.child_prepend(doctype)


def html_ensure(dom: DocumentNode) -> TagNode:
    """Find the top-level <html>, creating it around the content if needed"""
    found = tags_findByPath(dom, [lambda tag: tag.tag_name == 'html'])
    if found:
        html = found[0]
        for extra in found[1:]:
            html.children_append(extra.children)
            extra.detach()
        return html

    LOG("Page has no <html>, wrapping content", level=3)
    html = TagNode('html')
    content = [node for node in dom.children if not isinstance(node, ProcessingInstructionNode)]
    html.children_append(content)
    dom.child_append(html)
    return html


def section_ensure(html: TagNode, tag_name: str, prepend: bool) -> TagNode:
    """
    Find or create <head>/<body> directly below <html>.

    A missing <body> adopts every child of <html> except the head.
    """
    found = [tag for tag in html.childTags_get() if tag.tag_name == tag_name]
    if found:
        section = found[0]
        for extra in found[1:]:
            section.children_append(extra.children)
            extra.detach()
        return section

    section = TagNode(tag_name)
    if tag_name == 'body':
        content = [
            node for node in html.children
            if not (isinstance(node, TagNode) and node.tag_name == 'head')
        ]
        section.children_append(content)
    if prepend:
        html.child_prepend(section)
    else:
        html.child_append(section)
    return section


def boundNodes_hoist(dom: DocumentNode, head: TagNode) -> None:
    """Move marked style/link nodes into the head, dropping duplicates"""
    marker = bindMarker_get()
    seen: Set[Tuple[str, str]] = {boundNode_key(tag) for tag in head.childTags_get()}

    for node in tags_find(dom, lambda tag: tag.attribute_has(marker), deep=True):
        node.attribute_delete(marker)
        key = boundNode_key(node)
        if key in seen:
            node.detach()
            continue
        seen.add(key)
        head.child_append(node)


def boundNode_key(node: TagNode) -> Tuple[str, str]:
    if node.tag_name == 'link':
        return ('link', node.attribute_get('href') or '')
    return (node.tag_name, node.text_extract())
