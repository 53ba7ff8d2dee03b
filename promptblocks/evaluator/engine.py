"""
Evaluator - parses and evaluates block templates against a RenderContext.

Templates use ``{{ expression }}`` interpolation with dotted/bracket
variable paths, string/number/boolean/array literals and pipe filters with
arguments, plus ``{% for %}``/``{% if %}`` statements. Evaluation runs in a
Jinja2 sandbox that refuses to mutate values passed in; missing variables,
including missing dotted paths, and None values render as empty strings.
"""

import logging
from functools import lru_cache
from typing import Any, Mapping, Optional

from jinja2 import ChainableUndefined, Template, TemplateError, TemplateSyntaxError, meta, pass_context
from jinja2.runtime import Context as JinjaContext
from jinja2.sandbox import ImmutableSandboxedEnvironment
from jinja2.utils import LRUCache

from ..constants import TEMPLATE_CACHE_SIZE
from ..context import RenderContext
from .errors import EvaluationError
from .filters import FILTERS, Filter
from .macros import MACROS, Macro

logger = logging.getLogger(__name__)

# Not a valid identifier, so templates cannot reach it by name.
RENDER_CONTEXT_KEY = "@render_context"


def _bind_filter(name: str, func: Filter) -> Filter:
    """Adapt a ``(context, value, *args)`` filter to Jinja's calling convention."""

    @pass_context
    def bound(jinja_context: JinjaContext, value: Any, *args: Any, **kwargs: Any) -> Any:
        render_context = jinja_context.get(RENDER_CONTEXT_KEY)
        try:
            return func(render_context, value, *args, **kwargs)
        except TypeError as e:
            raise EvaluationError(f"Invalid arguments for filter '{name}': {e}", filter_name=name) from e

    return bound


def _finalize(value: Any) -> Any:
    return "" if value is None else value


class Evaluator:
    """Evaluates template strings with the built-in macros and filters.

    The filter and macro tables are fixed when the evaluator is built and
    the only state added later is a bounded LRU cache of compiled
    templates, so an evaluator may be shared across threads.

    Attributes:
        filter_names: Names of the registered custom filters.
        macro_names: Names of the registered macros.
        cached_templates: Number of compiled templates currently cached.

    Example:
        evaluator = Evaluator()
        context = RenderContext(variables={"char": "John"})
        evaluator.evaluate("Hello {{ char }}", context)
        # 'Hello John'
    """

    def __init__(
        self,
        filters: Mapping[str, Filter] = FILTERS,
        macros: Mapping[str, Macro] = MACROS,
        cache_size: int = TEMPLATE_CACHE_SIZE,
    ) -> None:
        """Initialize the Evaluator.

        Args:
            filters: Mapping of filter name to ``(context, value, *args)`` function.
            macros: Mapping of macro name to ``(context) -> value`` function.
            cache_size: Maximum number of compiled templates kept.
        """
        if cache_size < 1:
            raise ValueError("cache_size must be at least 1")
        self._filters = dict(filters)
        self._macros = dict(macros)
        self._compiled: LRUCache = LRUCache(cache_size)
        self._env = ImmutableSandboxedEnvironment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=ChainableUndefined,
            finalize=_finalize,
        )
        # lipsum draws from the module-level random, outside the context RNG
        self._env.globals.pop("lipsum", None)
        for name, func in self._filters.items():
            self._env.filters[name] = _bind_filter(name, func)

    @property
    def filter_names(self) -> list[str]:
        return sorted(self._filters)

    @property
    def macro_names(self) -> list[str]:
        return sorted(self._macros)

    @property
    def cached_templates(self) -> int:
        return len(self._compiled)

    def compile(self, template: str) -> Template:
        """Compile a template string.

        Raises:
            EvaluationError: On malformed syntax or unknown filters.
        """
        compiled = self._compiled.get(template)
        if compiled is None:
            try:
                compiled = self._env.from_string(template)
            except TemplateSyntaxError as e:
                raise EvaluationError(f"Invalid template (line {e.lineno}): {e.message}") from e
            self._compiled[template] = compiled
        return compiled

    def evaluate(
        self,
        template: str,
        context: RenderContext,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Evaluate a template against a context.

        Args:
            template: The template source.
            context: The render context supplying variables and capabilities.
            extra: Block-specific variables that shadow context variables.

        Returns:
            The rendered text.

        Raises:
            EvaluationError: If the template is malformed or a filter fails.
        """
        compiled = self.compile(template)
        try:
            return compiled.render(self._build_variables(context, extra))
        except EvaluationError:
            raise
        except TemplateError as e:
            raise EvaluationError(f"Template evaluation failed: {e.message or e}") from e
        except (TypeError, ValueError, ArithmeticError, LookupError) as e:
            raise EvaluationError(f"Template evaluation failed: {e}") from e

    def referenced_variables(self, template: str) -> set[str]:
        """Names a template reads from its render context.

        Macros are excluded since they are not supplied by the caller.

        Raises:
            EvaluationError: On malformed syntax.
        """
        try:
            parsed = self._env.parse(template)
        except TemplateSyntaxError as e:
            raise EvaluationError(f"Invalid template (line {e.lineno}): {e.message}") from e
        return set(meta.find_undeclared_variables(parsed)) - set(self._macros)

    def _build_variables(
        self,
        context: RenderContext,
        extra: Optional[Mapping[str, Any]],
    ) -> dict[str, Any]:
        # Lowest to highest precedence: macros, history, context variables, extras
        variables: dict[str, Any] = {name: macro(context) for name, macro in self._macros.items()}
        variables["history"] = context.history_for_template()
        variables.update(context.variables)
        if extra:
            variables.update(extra)
        variables[RENDER_CONTEXT_KEY] = context
        return variables


@lru_cache(maxsize=1)
def default_evaluator() -> Evaluator:
    """Shared evaluator with the built-in filters and macros."""
    logger.debug("Building default evaluator")
    return Evaluator()
