"""
Component compilation tests

Tests instance scripts, parameter/instance scoping, and style binding in
head and link modes, including de-duplication of created stylesheets.
"""

import pytest

from pagesmith.lib.backend import MemoryBackend
from pagesmith.lib.errors import EvaluationError, ResourceNotFound
from pagesmith.lib.formatter import StandardHtmlFormatter
from pagesmith.lib.pipeline import StandardPipeline
from pagesmith.models.fragment import ResourceType


CARD = (
    '<template><div class="card"><h2>{{ heading }}</h2><m-slot /></div></template>'
    '<script>return {"heading": title.upper()}</script>'
)


def pipeline_make(sources):
    backend = MemoryBackend(sources)
    return StandardPipeline(backend, formatter=StandardHtmlFormatter(mode='minimize')), backend


def html_compile(sources, page='index.html'):
    pipeline, backend = pipeline_make(sources)
    return pipeline.page_compile(page).html, pipeline, backend


class TestInstanceScripts:
    """Test component scripts and scoping"""

    def test_script_result_in_template(self):
        sources = {
            'index.html': '<m-component src="card.html" title="hello"><p>body</p></m-component>',
            'card.html': CARD,
        }
        html, _, _ = html_compile(sources)
        assert '<div class="card"><h2>HELLO</h2><p>body</p></div>' in html

    def test_instance_shadows_parameters(self):
        sources = {
            'index.html': '<m-component src="c.html" title="param" />',
            'c.html': '<template><p>{{ title }}</p></template><script>return {"title": "instance"}</script>',
        }
        html, _, _ = html_compile(sources)
        assert '<p>instance</p>' in html

    def test_parameters_visible_without_script(self):
        sources = {
            'index.html': '<m-component src="c.html" title="plain" />',
            'c.html': '<template><p>{{ title }}</p></template>',
        }
        html, _, _ = html_compile(sources)
        assert '<p>plain</p>' in html

    def test_script_returning_none(self):
        sources = {
            'index.html': '<m-component src="c.html" n="1" />',
            'c.html': '<template><p>{{ n }}</p></template><script>unused = 2</script>',
        }
        html, _, _ = html_compile(sources)
        assert '<p>1</p>' in html

    def test_script_must_return_mapping(self):
        sources = {
            'index.html': '<m-component src="c.html" />',
            'c.html': '<template></template><script>return 5</script>',
        }
        pipeline, backend = pipeline_make(sources)
        with pytest.raises(EvaluationError):
            pipeline.page_compile('index.html')
        assert backend.written == {}

    def test_script_error_propagates(self):
        sources = {
            'index.html': '<m-component src="c.html" />',
            'c.html': '<template></template><script>return {"x": undefined_name}</script>',
        }
        pipeline, _ = pipeline_make(sources)
        with pytest.raises(EvaluationError):
            pipeline.page_compile('index.html')

    def test_each_instance_runs_script(self):
        sources = {
            'index.html': '<m-component src="card.html" title="a" /><m-component src="card.html" title="b" />',
            'card.html': CARD,
        }
        html, _, _ = html_compile(sources)
        assert '<h2>A</h2>' in html
        assert '<h2>B</h2>' in html

    def test_external_script(self):
        sources = {
            'index.html': '<m-component src="parts/c.html" n="{{ 21 }}" />',
            'parts/c.html': '<template><p>{{ doubled }}</p></template><script src="c.py"></script>',
            'parts/c.py': "return {'doubled': n * 2}\n",
        }
        html, pipeline, _ = html_compile(sources)
        assert '<p>42</p>' in html
        assert pipeline.cache.externalScript_has('parts/c.py')

    def test_script_starting_on_tag_line(self):
        sources = {
            'index.html': '<m-component src="c.html" n="{{ 3 }}" />',
            'c.html': (
                '<template><p>{{ total }}</p></template>\n'
                '<script>total = 0\n'
                '    for i in range(n):\n'
                '        total += i\n'
                '    return {"total": total}\n'
                '</script>'
            ),
        }
        html, _, _ = html_compile(sources)
        assert '<p>3</p>' in html

    def test_missing_external_script(self):
        sources = {
            'index.html': '<m-component src="c.html" />',
            'c.html': '<template></template><script src="gone.py"></script>',
        }
        pipeline, _ = pipeline_make(sources)
        with pytest.raises(ResourceNotFound):
            pipeline.page_compile('index.html')

    def test_component_alias(self):
        sources = {
            'index.html': '<m-import src="card.html" as="card" component /><card title="x">y</card>',
            'card.html': CARD,
        }
        html, _, _ = html_compile(sources)
        assert '<div class="card"><h2>X</h2>y</div>' in html


class TestStyles:
    """Test style binding"""

    def test_head_style(self):
        sources = {
            'index.html': '<m-component src="c.html" />',
            'c.html': '<template><p class="c">x</p></template><style>.c { color: red; }</style>',
        }
        html, _, backend = html_compile(sources)
        assert '<head><style>.c { color: red; }</style></head>' in html
        assert '<body><p class="c">x</p></body>' in html
        assert 'm-bound' not in html
        assert backend.created == []

    def test_head_style_deduplicated(self):
        sources = {
            'index.html': '<m-component src="c.html" /><m-component src="c.html" />',
            'c.html': '<template><p>x</p></template><style>p { margin: 0; }</style>',
        }
        html, _, _ = html_compile(sources)
        assert html.count('<style>') == 1

    def test_link_style(self):
        sources = {
            'index.html': '<m-component src="c.html" />',
            'c.html': '<template><p>x</p></template><style bind="link">p { margin: 0; }</style>',
        }
        html, _, backend = html_compile(sources)
        assert '<head><link rel="stylesheet" href="resource0.css"></head>' in html
        assert backend.created == [(ResourceType.CSS, 'p { margin: 0; }', 'c.html', 'resource0.css')]
        assert backend.written['resource0.css'] == 'p { margin: 0; }'

    def test_link_created_once_per_content(self):
        """Identical stylesheets from different components share one resource"""
        css = '<style bind="link">p { margin: 0; }</style>'
        sources = {
            'index.html': '<m-component src="a.html" /><m-component src="b.html" /><m-component src="a.html" />',
            'a.html': '<template><p>a</p></template>' + css,
            'b.html': '<template><p>b</p></template>' + css,
        }
        html, pipeline, backend = html_compile(sources)
        assert len(backend.created) == 1
        assert html.count('<link') == 1
        assert len(pipeline.cache.created_resources) == 1

    def test_component_with_named_slot_and_style(self):
        sources = {
            'index.html': (
                '<m-component src="panel.html" kind="info">'
                '<m-content name="title">Heads up</m-content>'
                '<p>Details</p>'
                '</m-component>'
            ),
            'panel.html': (
                '<template><section class="{{ kind }}"><h3><m-slot name="title" /></h3><m-slot /></section></template>'
                '<style bind="link">.info { border: 1px solid; }</style>'
            ),
        }
        html, _, backend = html_compile(sources)
        assert '<section class="info"><h3>Heads up</h3><p>Details</p></section>' in html
        assert '<link rel="stylesheet" href="resource0.css">' in html
        assert len(backend.created) == 1


class TestResourceLinking:
    """Test StandardPipeline.resource_link directly"""

    def test_identical_content_created_once(self):
        pipeline, backend = pipeline_make({})
        first = pipeline.resource_link(ResourceType.CSS, 'a {}', 'one.html')
        second = pipeline.resource_link(ResourceType.CSS, 'a {}', 'two.html')
        assert first == second
        assert len(backend.created) == 1

    def test_different_content_gets_distinct_paths(self):
        pipeline, backend = pipeline_make({})
        first = pipeline.resource_link(ResourceType.CSS, 'a {}', 'one.html')
        second = pipeline.resource_link(ResourceType.CSS, 'b {}', 'one.html')
        assert first != second
        assert len(backend.created) == 2

    def test_reset_forgets_created_resources(self):
        pipeline, backend = pipeline_make({})
        pipeline.resource_link(ResourceType.CSS, 'a {}', 'one.html')
        pipeline.reset()
        pipeline.resource_link(ResourceType.CSS, 'a {}', 'one.html')
        assert len(backend.created) == 2
