"""
Page assembly and formatter tests

Tests document normalization (doctype, html/head/body), hoisting of bound
nodes, and the none/minimize/pretty formatting modes.
"""

from pagesmith.lib.binder import bindMarker_get
from pagesmith.lib.dom import TagNode, TextNode
from pagesmith.lib.formatter import StandardHtmlFormatter
from pagesmith.lib.page import page_build
from pagesmith.lib.parser import ResourceParser


def dom_parse(text):
    return ResourceParser().dom_parse(text)


class TestPageBuild:
    """Test page_build"""

    def test_bare_content_wrapped(self):
        dom = page_build(dom_parse('<p>x</p>'))
        assert dom.html_generate() == '<!DOCTYPE html><html><head></head><body><p>x</p></body></html>'

    def test_existing_structure_kept(self):
        source = '<!DOCTYPE html><html><head><title>T</title></head><body><p>x</p></body></html>'
        assert page_build(dom_parse(source)).html_generate() == source

    def test_missing_body_created(self):
        dom = page_build(dom_parse('<html><head></head><p>x</p></html>'))
        assert dom.html_generate() == '<!DOCTYPE html><html><head></head><body><p>x</p></body></html>'

    def test_single_doctype(self):
        dom = page_build(dom_parse('<!DOCTYPE html><p>a</p><!DOCTYPE html>'))
        assert dom.html_generate().count('<!DOCTYPE') == 1
        assert dom.html_generate().startswith('<!DOCTYPE html><html>')

    def test_bound_nodes_hoisted_once(self):
        dom = dom_parse('<p>x</p>')
        for _ in range(2):
            style = TagNode('style', {bindMarker_get(): None})
            style.child_append(TextNode('p {}'))
            dom.child_append(style)

        html = page_build(dom).html_generate()
        assert html == '<!DOCTYPE html><html><head><style>p {}</style></head><body><p>x</p></body></html>'


class TestFormatter:
    """Test StandardHtmlFormatter modes"""

    def format_run(self, text, mode):
        formatter = StandardHtmlFormatter(mode=mode)
        dom = dom_parse(text)
        formatter.tree_format(dom)
        return formatter.text_format(dom.html_generate())

    def test_none_mode(self):
        text = '<div>\n  <p>a   b</p>\n</div>'
        assert self.format_run(text, 'none') == text

    def test_minimize(self):
        text = '<div>\n  <p>a   b</p>\n</div>\n'
        assert self.format_run(text, 'minimize') == '<div><p>a b</p></div>\n'

    def test_minimize_keeps_inline_spacing(self):
        text = '<p>Hello   <b>bold</b>   world</p>'
        assert self.format_run(text, 'minimize') == '<p>Hello <b>bold</b> world</p>\n'

    def test_preformatted_untouched(self):
        text = '<pre>  a\n    b</pre>'
        assert self.format_run(text, 'minimize') == text + '\n'

    def test_pretty(self):
        dom = page_build(dom_parse('<p>x</p>'))
        formatter = StandardHtmlFormatter(mode='pretty', indent='  ')
        formatter.tree_format(dom)
        html = formatter.text_format(dom.html_generate())
        assert html == (
            '<!DOCTYPE html>\n'
            '<html>\n'
            '  <head></head>\n'
            '  <body>\n'
            '    <p>x</p>\n'
            '  </body>\n'
            '</html>\n'
        )

    def test_pretty_leaves_inline_content(self):
        text = '<div><p>a <b>b</b></p></div>'
        assert self.format_run(text, 'pretty') == '<div>\n    <p>a <b>b</b></p>\n</div>\n'
