"""
Resource parser tests

Tests markup tree building, directive recognition, and component
splitting into template, script and style.
"""

import pytest

from pagesmith.lib.dom import (
    CommentNode,
    ComponentRefNode,
    ContentNode,
    FragmentRefNode,
    ImportNode,
    ProcessingInstructionNode,
    SlotNode,
    TagNode,
    TextNode,
    VarNode,
)
from pagesmith.lib.errors import ResourceFormatError
from pagesmith.lib.parser import ResourceParser
from pagesmith.models.fragment import StyleBindType


@pytest.fixture
def parser():
    return ResourceParser()


class TestMarkup:
    """Test plain markup"""

    def test_simple_element(self, parser):
        fragment = parser.fragment_parse('index.html', '<p class="x">Hello</p>')
        assert fragment.path == 'index.html'
        p = fragment.dom.first_child
        assert isinstance(p, TagNode)
        assert p.tag_name == 'p'
        assert p.attribute_get('class') == 'x'
        assert p.text_extract() == 'Hello'

    def test_void_elements_have_no_children(self, parser):
        dom = parser.dom_parse('<p>a<br>b</p>')
        p = dom.first_child
        assert [type(child) for child in p.children] == [TextNode, TagNode, TextNode]
        assert p.children[1].tag_name == 'br'

    def test_stray_end_tag_ignored(self, parser):
        dom = parser.dom_parse('<div></span>text</div>')
        assert dom.html_generate() == '<div>text</div>'

    def test_unclosed_tags_closed(self, parser):
        dom = parser.dom_parse('<div><p>text')
        assert dom.html_generate() == '<div><p>text</p></div>'

    def test_comment(self, parser):
        dom = parser.dom_parse('<!-- note -->')
        assert isinstance(dom.first_child, CommentNode)
        assert dom.first_child.text == ' note '

    def test_doctype(self, parser):
        dom = parser.dom_parse('<!DOCTYPE html><p>x</p>')
        doctype = dom.first_child
        assert isinstance(doctype, ProcessingInstructionNode)
        assert doctype.name == '!doctype'
        assert dom.html_generate() == '<!DOCTYPE html><p>x</p>'

    def test_entities_round_trip(self, parser):
        dom = parser.dom_parse('<p>a &amp; b</p>')
        assert dom.first_child.text_extract() == 'a & b'
        assert dom.html_generate() == '<p>a &amp; b</p>'

    def test_valueless_attribute(self, parser):
        dom = parser.dom_parse('<input disabled>')
        assert dom.first_child.attributes == {'disabled': None}


class TestDirectives:
    """Test recognition of m-* directive elements"""

    def test_reference_nodes(self, parser):
        dom = parser.dom_parse('<m-fragment src="a.html"></m-fragment><m-component src="c.html" title="t" />')
        fragment_ref, component_ref = dom.children
        assert isinstance(fragment_ref, FragmentRefNode)
        assert fragment_ref.src == 'a.html'
        assert isinstance(component_ref, ComponentRefNode)
        assert component_ref.parameters_get() == {'title': 't'}

    def test_self_closing_slot(self, parser):
        """A self-closing directive does not swallow its siblings"""
        dom = parser.dom_parse('<div><m-slot name="title" /><p>after</p></div>')
        div = dom.first_child
        slot = div.first_child
        assert isinstance(slot, SlotNode)
        assert slot.slot_name == 'title'
        assert slot.children == []
        assert div.children[1].tag_name == 'p'

    def test_default_slot_name(self, parser):
        dom = parser.dom_parse('<m-slot required></m-slot><m-content>x</m-content>')
        slot, content = dom.children
        assert slot.slot_name == '[default]'
        assert slot.required
        assert isinstance(content, ContentNode)
        assert content.slot_name == '[default]'

    def test_var_and_import(self, parser):
        dom = parser.dom_parse('<m-var a="1" /><m-import src="card.html" as="Card" component />')
        var, imported = dom.children
        assert isinstance(var, VarNode)
        assert isinstance(imported, ImportNode)
        assert imported.alias == 'card'
        assert imported.component_is

    def test_unknown_prefixed_tag_is_plain(self, parser):
        dom = parser.dom_parse('<m-unknown></m-unknown>')
        node = dom.first_child
        assert type(node) is TagNode


class TestComponents:
    """Test component splitting"""

    def test_all_parts(self, parser):
        text = (
            '<template><div>{{ title }}</div></template>'
            '<script>return {"title": "x"}</script>'
            '<style bind="link">.card { color: red; }</style>'
        )
        component = parser.component_parse('card.html', text)
        assert component.template.path == 'card.html'
        assert component.template.dom.html_generate() == '<div>{{ title }}</div>'
        assert component.script.text == 'return {"title": "x"}'
        assert component.script.src is None
        assert component.style.text == '.card { color: red; }'
        assert component.style.bind_type == StyleBindType.LINK

    def test_template_only(self, parser):
        component = parser.component_parse('card.html', '<template><p>x</p></template>')
        assert component.script is None
        assert component.style is None

    def test_style_bind_defaults_to_head(self, parser):
        component = parser.component_parse('card.html', '<template></template><style>p {}</style>')
        assert component.style.bind_type == StyleBindType.HEAD

    def test_external_script_resolved(self, parser):
        text = '<template></template><script src="card.py"></script>'
        component = parser.component_parse('components/card.html', text)
        assert component.script.src == 'components/card.py'
        assert component.script.text is None

    def test_missing_template_raises(self, parser):
        with pytest.raises(ResourceFormatError):
            parser.component_parse('card.html', '<div>no template</div>')

    def test_duplicate_part_raises(self, parser):
        with pytest.raises(ResourceFormatError):
            parser.component_parse('card.html', '<template></template><template></template>')

    def test_unknown_bind_raises(self, parser):
        with pytest.raises(ResourceFormatError):
            parser.component_parse('card.html', '<template></template><style bind="inline"></style>')
