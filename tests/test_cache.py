"""
Pipeline cache tests

Tests the has/get/store contract, clone-on-read for fragments and
components, and clearing.
"""

import pytest

from pagesmith.lib.cache import PipelineCache
from pagesmith.lib.dom import DocumentNode, TagNode, TextNode
from pagesmith.lib.errors import CacheMiss, PipelineError
from pagesmith.lib.evaluator import Evaluator
from pagesmith.models.fragment import Component, Fragment


def fragment_make(path='index.html', text='hello'):
    dom = DocumentNode()
    p = TagNode('p')
    p.child_append(TextNode(text))
    dom.child_append(p)
    return Fragment(path=path, dom=dom)


class TestCacheContract:
    """Test has/get/store"""

    def test_miss_raises(self):
        cache = PipelineCache()
        assert not cache.fragment_has('index.html')
        with pytest.raises(CacheMiss) as excinfo:
            cache.fragment_get('index.html')
        assert 'index.html' in str(excinfo.value)

    def test_miss_is_key_and_pipeline_error(self):
        cache = PipelineCache()
        with pytest.raises(KeyError):
            cache.expression_get('{{ x }}')
        with pytest.raises(PipelineError):
            cache.createdResource_get('abc')

    def test_store_then_get(self):
        cache = PipelineCache()
        content = Evaluator().expression_parse('{{ 1 }}')
        cache.expression_store('{{ 1 }}', content)
        assert cache.expression_has('{{ 1 }}')
        assert cache.expression_get('{{ 1 }}') is content

    def test_created_resource(self):
        cache = PipelineCache()
        cache.createdResource_store('hash', 'style.css')
        assert cache.createdResource_get('hash') == 'style.css'

    def test_external_script(self):
        cache = PipelineCache()
        cache.externalScript_store('card.py', "return {}")
        assert cache.externalScript_get('card.py') == "return {}"


class TestCloneOnRead:
    """Fragments and components are handed out as copies"""

    def test_fragment_get_returns_copy(self):
        cache = PipelineCache()
        master = fragment_make()
        cache.fragment_store(master)

        first = cache.fragment_get('index.html')
        second = cache.fragment_get('index.html')
        assert first is not master and first.dom is not master.dom
        assert first.dom is not second.dom

        first.dom.first_child.first_child.text = 'mutated'
        assert master.dom.html_generate() == '<p>hello</p>'
        assert cache.fragment_get('index.html').dom.html_generate() == '<p>hello</p>'

    def test_component_get_returns_copy(self):
        cache = PipelineCache()
        master = Component(path='card.html', template=fragment_make('card.html'))
        cache.component_store(master)

        copy = cache.component_get('card.html')
        assert copy.path == 'card.html'
        assert copy.template.dom is not master.template.dom
        copy.template.dom.children_clear()
        assert master.template.dom.html_generate() == '<p>hello</p>'


class TestClear:
    """Test clear()"""

    def test_clear_empties_every_table(self):
        cache = PipelineCache()
        cache.fragment_store(fragment_make())
        cache.createdResource_store('hash', 'style.css')
        cache.script_store('return 1', Evaluator().script_parse('return 1'))

        cache.clear()

        assert not cache.fragment_has('index.html')
        assert not cache.createdResource_has('hash')
        assert not cache.script_has('return 1')
