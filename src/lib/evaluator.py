"""
Expression and script evaluation

Two forms of embedded code are supported:

    Expressions - text containing ``{{ ... }}``. Text that is exactly one
                  delimited expression evaluates to the raw value; text that
                  mixes literals and expressions renders to a string.
                  Compiled with jinja2, undefined names are errors.

    Scripts     - Python function bodies (component instance scripts).
                  Scope entries are visible as globals and ``return``
                  supplies the result.

Either form compiles to an EvalContent that can be invoked any number of
times against different scopes. Compilation is memoized by the pipeline
cache, so each distinct text is compiled at most once per pipeline.

Example:
    >>> evaluator = Evaluator()
    >>> content = evaluator.expression_parse('{{ a + b }}')
    >>> content.invoke(Scope().layer_push('parameters', {'a': 2, 'b': 3}))
    5
"""

import builtins
import inspect
import re
import textwrap
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, is_undefined, nodes

from ..config import appsettings
from ..models.scope import Scope
from .errors import EvaluationError
from .log import LOG


SCRIPT_FUNCTION_NAME = "__pagesmith_script__"


class EvalKind(Enum):
    EXPRESSION = "expression"    # "{{ expr }}" -> raw value
    TEMPLATE = "template"        # "a {{ expr }} b" -> str
    SCRIPT = "script"            # function body -> return value


class EvalContent:
    """
    A compiled, reusable unit of embedded code.

    Attributes:
        kind: Which form of code this is
        source: Original text, reported in errors
    """

    def __init__(self, kind: EvalKind, source: str, function: Callable[[Mapping[str, Any]], Any]) -> None:
        self.kind = kind
        self.source = source
        self._function = function

    def invoke(self, scope: Mapping[str, Any]) -> Any:
        """
        Execute against ``scope`` and return the value.

        Raises:
            EvaluationError: Wrapping whatever the code raised
        """
        LOG(f"Evaluating {self.kind.value}: {self.source!r}", level=3)
        try:
            return self._function(scope)
        except EvaluationError:
            raise
        except Exception as e:
            raise EvaluationError(self.source, e) from e

    def __repr__(self) -> str:
        return f"<EvalContent {self.kind.value} {self.source!r}>"


class Evaluator:
    """
    Compiles expression and script text into EvalContent units.

    One jinja2 Environment is owned per evaluator; it uses StrictUndefined
    so that a name missing from the scope raises instead of rendering empty.
    """

    def __init__(self) -> None:
        self.environment = Environment(
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            finalize=value_stringify,
            variable_start_string=appsettings.expression_open,
            variable_end_string=appsettings.expression_close,
        )
        opening = re.escape(appsettings.expression_open)
        closing = re.escape(appsettings.expression_close)
        self._detect_pattern = re.compile(f"{opening}.*?{closing}", re.DOTALL)

    def expression_detect(self, text: Optional[str]) -> bool:
        """True if ``text`` contains at least one delimited expression"""
        if not text:
            return False
        return self._detect_pattern.search(text) is not None

    def singleExpression_get(self, text: str) -> Optional[str]:
        """
        Source of the one expression ``text`` consists of, or None.

        Surrounding whitespace is allowed. Anything else outside the
        delimiters (literal text, a second expression, a block tag) makes
        the text a template.

        Raises:
            TemplateSyntaxError: If the text does not parse
        """
        body = self.environment.parse(text).body
        if len(body) != 1 or not isinstance(body[0], nodes.Output):
            return None
        parts = [
            node for node in body[0].nodes
            if not (isinstance(node, nodes.TemplateData) and not node.data.strip())
        ]
        if len(parts) != 1 or isinstance(parts[0], nodes.TemplateData):
            return None

        opening, closing = appsettings.expression_open, appsettings.expression_close
        stripped = text.strip()
        if not (stripped.startswith(opening) and stripped.endswith(closing)):
            return None
        inner = stripped[len(opening):len(stripped) - len(closing)]
        # whitespace control markers: {{- expr -}}
        if inner.startswith(('-', '+')):
            inner = inner[1:]
        if inner.endswith('-'):
            inner = inner[:-1]
        return inner.strip()

    def expression_parse(self, text: str) -> EvalContent:
        """
        Compile expression text.

        Args:
            text: Text containing one or more delimited expressions

        Returns:
            EvalContent of kind EXPRESSION (single expression, raw value)
            or TEMPLATE (mixed text, string value)

        Raises:
            EvaluationError: On a syntax error
        """
        try:
            single = self.singleExpression_get(text)
            if single is not None:
                compiled = self.environment.compile_expression(single, undefined_to_none=False)
                return EvalContent(EvalKind.EXPRESSION, text, _expression_wrap(compiled, text))

            template = self.environment.from_string(text)
            return EvalContent(EvalKind.TEMPLATE, text, lambda scope: template.render(dict(scope)))
        except TemplateSyntaxError as e:
            raise EvaluationError(text, e) from e

    def script_parse(self, text: str) -> EvalContent:
        """
        Compile a script body.

        The text is dedented (the first line on its own, as a docstring
        would be) and wrapped in a function, so ``return`` is
        allowed at the top level.

        Raises:
            EvaluationError: On a syntax error
        """
        body = inspect.cleandoc(text)
        if not body.strip():
            body = "pass"
        source = f"def {SCRIPT_FUNCTION_NAME}():\n{textwrap.indent(body, '    ')}\n"
        try:
            code = compile(source, "<script>", "exec")
        except SyntaxError as e:
            raise EvaluationError(text, e) from e

        def script_run(scope: Mapping[str, Any]) -> Any:
            namespace = dict(scope)
            namespace['__builtins__'] = builtins
            exec(code, namespace)
            return namespace[SCRIPT_FUNCTION_NAME]()

        return EvalContent(EvalKind.SCRIPT, text, script_run)


def _expression_wrap(compiled: Callable[..., Any], text: str) -> Callable[[Mapping[str, Any]], Any]:
    def expression_run(scope: Mapping[str, Any]) -> Any:
        value = compiled(dict(scope))
        if is_undefined(value):
            # StrictUndefined only raises once it is used; a bare name is returned as-is
            raise EvaluationError(text, message=f"{text.strip()} is undefined")
        return value
    return expression_run


def scope_compose(parameters: Mapping[str, Any], overlay: Optional[Mapping[str, Any]] = None) -> Scope:
    """
    Build the scope of a fragment or component compile.

    The overlay (component instance data) takes precedence over the
    parameters. Nothing is inherited from the caller's own scope.

    Args:
        parameters: Evaluated parameters of the include
        overlay: Optional instance data that shadows parameters

    Returns:
        A fresh Scope
    """
    scope = Scope().layer_push('parameters', parameters)
    if overlay:
        scope = scope.layer_push('instance', overlay)
    return scope


def value_stringify(value: Any) -> str:
    """Text form of an evaluated value, as inserted into output"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
