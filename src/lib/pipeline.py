"""
Standard compilation pipeline

Public entry point of pagesmith. A pipeline takes one raw page from its
resource backend and writes one compiled, directive-free page back to it.
Incidental resources (extracted stylesheets) are handed to the backend
through resource_link().

Each pipeline owns a private PipelineCache. Pipelines never share state,
so several can run side by side; a single pipeline is meant to be driven
by one caller at a time.

Example:
    >>> backend = MemoryBackend({'index.html': '<p>{{ 2 + 3 }}</p>'})
    >>> pipeline = StandardPipeline(backend)
    >>> page = pipeline.page_compile('index.html')
    >>> '<p>5</p>' in page.html
    True
"""

from typing import Any, List, Optional

import xxhash

from ..config import appsettings
from ..models.fragment import (
    Component,
    Fragment,
    FragmentContext,
    Page,
    PipelineContext,
    ResourceType,
)
from ..models.scope import Scope
from .backend import ResourceBackend
from .binder import style_bind
from .cache import PipelineCache
from .compiler import Compiler
from .errors import CircularInclusionError, EvaluationError
from .evaluator import EvalContent, Evaluator, scope_compose
from .formatter import HtmlFormatter, StandardHtmlFormatter
from .log import LOG
from .page import page_build
from .parser import ResourceParser


class StandardPipeline:
    """
    Primary compilation pipeline.

    Args:
        backend: Resource backend (source and destination)
        formatter: Optional formatter, defaults to StandardHtmlFormatter
        parser: Optional override of the standard ResourceParser
        compiler: Optional override of the standard Compiler
        evaluator: Optional override of the standard Evaluator
    """

    def __init__(
        self,
        backend: ResourceBackend,
        formatter: Optional[HtmlFormatter] = None,
        parser: Optional[ResourceParser] = None,
        compiler: Optional[Compiler] = None,
        evaluator: Optional[Evaluator] = None,
    ) -> None:
        self.cache = PipelineCache()
        self.backend = backend
        self.formatter: HtmlFormatter = formatter or StandardHtmlFormatter()
        self.parser = parser or ResourceParser()
        self.compiler = compiler or Compiler()
        self.evaluator = evaluator or Evaluator()

        # resources currently being compiled, outermost first
        self.resolution_stack: List[str] = []

    # Entry points

    def page_compile(self, res_path: str) -> Page:
        """
        Compile a page from start to finish and write it.

        Nothing is written if any step fails.

        Args:
            res_path: Path of the page, used both as source and destination

        Returns:
            Page with the final tree and formatted markup
        """
        LOG(f"Compiling page {res_path}", level=1)

        fragment = self.fragment_compile(res_path)
        dom = page_build(fragment.dom)
        self.formatter.tree_format(dom)
        html = self.formatter.text_format(dom.html_generate())

        self.backend.resource_write(ResourceType.HTML, res_path, html)

        page = Page(path=res_path, dom=dom, html=html)
        self.cache.page_store(page)
        return page

    def fragment_compile(self, res_path: str, fragment_context: Optional[FragmentContext] = None) -> Fragment:
        """
        Compile a fragment.

        Args:
            res_path: Path to the fragment source
            fragment_context: Slot contents, parameters and scope; empty if omitted

        Returns:
            A freshly compiled Fragment (never the cached master)
        """
        fragment = self.fragment_getOrParse(res_path)
        if fragment_context is None:
            fragment_context = FragmentContext()

        context = PipelineContext(pipeline=self, fragment=fragment, fragment_context=fragment_context)
        with self.resolution_enter(res_path):
            self.compiler.html_compile(fragment, context)
        return fragment

    def component_compile(self, res_path: str, fragment_context: Optional[FragmentContext] = None) -> Fragment:
        """
        Compile a component.

        The instance script runs once against the parameter scope; its
        result overlays the parameters for the template compile. A style
        block, if any, is compiled and bound to the output.

        Args:
            res_path: Path to the component source
            fragment_context: Slot contents, parameters and scope

        Returns:
            Fragment holding the compiled template
        """
        component = self.component_getOrParse(res_path)
        if fragment_context is None:
            fragment_context = FragmentContext()
        fragment = component.template

        with self.resolution_enter(res_path):
            instance = self.instance_create(component, fragment_context.scope)

            context = PipelineContext(
                pipeline=self,
                fragment=fragment,
                fragment_context=FragmentContext(
                    slot_contents=fragment_context.slot_contents,
                    parameters=fragment_context.parameters,
                    scope=scope_compose(fragment_context.parameters, instance),
                ),
            )
            self.compiler.html_compile(fragment, context)

            if component.style is not None:
                css = self.css_compile(component.style.text)
                style_bind(component.path, css, component.style.bind_type, context)

        return fragment

    def expression_compile(self, value: str, scope: Scope) -> Any:
        """
        Evaluate text that may hold an expression.

        Plain text is returned unchanged.

        Args:
            value: Text value
            scope: Scope to evaluate against

        Returns:
            The expression's value, or ``value`` itself
        """
        if not self.evaluator.expression_detect(value):
            return value
        expression = value.strip()
        return self.expression_getOrParse(expression).invoke(scope)

    def script_compile(self, script: str, scope: Scope) -> Any:
        """Run a script body against ``scope`` and return its return value"""
        text = script.strip()
        return self.script_getOrParse(text).invoke(scope)

    def externalScript_compile(self, res_path: str, scope: Scope) -> Any:
        """Run a script read from the backend (cached by path)"""
        return self.script_compile(self.externalScript_getOrLoad(res_path), scope)

    def css_compile(self, css: str) -> str:
        """Compile style text. Styles are currently passed through unchanged."""
        return css

    def resource_link(self, kind: ResourceType, content: str, source_path: str) -> str:
        """
        Link an incidental resource, de-duplicated by content.

        The first time some content is seen the backend creates it; after
        that the earlier path is reused (or handed to the backend's
        ``createdResource_relink`` when it has one).

        Args:
            kind: Type of resource
            content: Resource text
            source_path: Resource that produced this content

        Returns:
            Path to reference the created resource by
        """
        content_hash = self.content_hash(content)

        if self.cache.createdResource_has(content_hash):
            original_path = self.cache.createdResource_get(content_hash)
            relink = getattr(self.backend, 'createdResource_relink', None)
            if relink is not None:
                return relink(kind, content, source_path, original_path)
            return original_path

        res_path = self.backend.resource_create(kind, content, source_path)
        self.cache.createdResource_store(content_hash, res_path)
        LOG(f"Created {kind.value} resource {res_path} for {source_path}", level=2)
        return res_path

    def reset(self) -> None:
        """Return the pipeline to its initial state"""
        self.cache.clear()
        self.resolution_stack.clear()

    def content_hash(self, content: str) -> str:
        """
        NON-CRYPTOGRAPHIC hash of pipeline content, for caching only.

        Override to change the digest.
        """
        return xxhash.xxh64_hexdigest(content.encode('utf-8'))

    # Resource loading

    def fragment_preload(self, res_path: str) -> None:
        """Make sure a fragment is parsed and cached"""
        if not self.cache.fragment_has(res_path):
            text = self.backend.resource_get(ResourceType.HTML, res_path)
            self.cache.fragment_store(self.parser.fragment_parse(res_path, text))

    def component_preload(self, res_path: str) -> None:
        """Make sure a component is parsed and cached"""
        if not self.cache.component_has(res_path):
            text = self.backend.resource_get(ResourceType.HTML, res_path)
            self.cache.component_store(self.parser.component_parse(res_path, text))

    def fragment_getOrParse(self, res_path: str) -> Fragment:
        """Clone of the cached fragment, parsing it on first use"""
        self.fragment_preload(res_path)
        return self.cache.fragment_get(res_path)

    def component_getOrParse(self, res_path: str) -> Component:
        """Clone of the cached component, parsing it on first use"""
        self.component_preload(res_path)
        return self.cache.component_get(res_path)

    def expression_getOrParse(self, expression: str) -> EvalContent:
        if not self.cache.expression_has(expression):
            self.cache.expression_store(expression, self.evaluator.expression_parse(expression))
        return self.cache.expression_get(expression)

    def script_getOrParse(self, script: str) -> EvalContent:
        if not self.cache.script_has(script):
            self.cache.script_store(script, self.evaluator.script_parse(script))
        return self.cache.script_get(script)

    def externalScript_getOrLoad(self, res_path: str) -> str:
        if not self.cache.externalScript_has(res_path):
            text = self.backend.resource_get(ResourceType.PYTHON, res_path)
            self.cache.externalScript_store(res_path, text.strip())
        return self.cache.externalScript_get(res_path)

    # Internals

    def instance_create(self, component: Component, scope: Scope) -> dict:
        """Run the component's instance script; no script means no instance data"""
        script = component.script
        if script is None:
            return {}

        if script.src is not None:
            instance = self.externalScript_compile(script.src, scope)
            source = script.src
        else:
            instance = self.script_compile(script.text or "", scope)
            source = script.text or ""

        if instance is None:
            return {}
        if not isinstance(instance, dict):
            raise EvaluationError(
                source, message=f"component script must return a dict, got {type(instance).__name__}"
            )
        return instance

    def resolution_enter(self, res_path: str) -> "_ResolutionFrame":
        return _ResolutionFrame(self, res_path)


class _ResolutionFrame:
    """Context manager tracking the chain of resources being compiled"""

    def __init__(self, pipeline: StandardPipeline, res_path: str) -> None:
        self.pipeline = pipeline
        self.res_path = res_path

    def __enter__(self) -> None:
        stack = self.pipeline.resolution_stack
        if appsettings.detect_cycles and self.res_path in stack:
            raise CircularInclusionError(self.res_path, stack)
        if len(stack) >= appsettings.max_include_depth:
            raise CircularInclusionError(self.res_path, stack)
        stack.append(self.res_path)

    def __exit__(self, *exc_info: Any) -> None:
        self.pipeline.resolution_stack.pop()
