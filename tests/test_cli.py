"""
Command line pipeline tests

Tests the ProgramState stages behind ``python -m pagesmith`` without going
through argument parsing.
"""

from argparse import Namespace

import pytest

from pagesmith.__main__ import env_check, pages_compile, results_report
from pagesmith.lib import state_disconnectFromLogger
from pagesmith.models import ProgramState, pipeline


@pytest.fixture
def site(tmp_path):
    source = tmp_path / 'site'
    (source / 'docs').mkdir(parents=True)
    (source / 'index.html').write_text('<m-fragment src="parts/nav.html" /><p>home</p>', encoding='utf-8')
    (source / 'docs' / 'intro.html').write_text('<m-fragment src="/parts/nav.html" /><p>intro</p>', encoding='utf-8')
    (source / 'parts').mkdir()
    (source / 'parts' / 'nav.html').write_text('<nav>menu</nav>', encoding='utf-8')
    yield source, tmp_path / 'public'
    state_disconnectFromLogger()


class TestProgramState:
    """Test state creation and the pipeline helper"""

    def test_create_from_namespace(self, tmp_path):
        options = Namespace(pages='a.html,b.html', verbosity=2, unrelated=True)
        state = ProgramState.state_createFromNamespace(options, tmp_path, tmp_path / 'out')
        assert state.pages == 'a.html,b.html'
        assert state.verbosity == 2
        assert state.inputdir == tmp_path
        assert not hasattr(state, 'unrelated')

    def test_pipeline_applies_stages_in_order(self):
        def first(state):
            state = state.copy()
            state.pages = 'first'
            return state

        def second(state):
            state = state.copy()
            state.pages += ',second'
            return state

        assert pipeline(ProgramState(), first, second).pages == 'first,second'


class TestStages:
    """Test env_check, pages_compile and results_report"""

    def test_full_run(self, site):
        source, dest = site
        state = ProgramState(inputdir=source, outputdir=dest, verbosity=0, pages='index.html, docs/intro.html')

        final = pipeline(state, env_check, pages_compile, results_report)

        assert final.envOK
        assert final.pagePaths == ['index.html', 'docs/intro.html']
        assert final.compileResult['pages'] == ['index.html', 'docs/intro.html']
        assert '<nav>menu</nav>' in (dest / 'index.html').read_text(encoding='utf-8')
        assert '<p>intro</p>' in (dest / 'docs' / 'intro.html').read_text(encoding='utf-8')

    def test_missing_page_exits(self, site):
        source, dest = site
        state = ProgramState(inputdir=source, outputdir=dest, verbosity=0, pages='gone.html')
        with pytest.raises(SystemExit):
            env_check(state)

    def test_missing_inputdir_exits(self, tmp_path):
        state = ProgramState(inputdir=tmp_path / 'nope', outputdir=tmp_path / 'out', verbosity=0)
        with pytest.raises(SystemExit):
            env_check(state)

    def test_compile_error_exits(self, site):
        source, dest = site
        (source / 'broken.html').write_text('<p>{{ undefined_name }}</p>', encoding='utf-8')
        state = ProgramState(inputdir=source, outputdir=dest, verbosity=0, pages='broken.html')
        with pytest.raises(SystemExit):
            pipeline(state, env_check, pages_compile)
        assert not (dest / 'broken.html').exists()
