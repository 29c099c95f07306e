"""Template rendering for deploy-helper.

Wraps a Jinja2 environment configured with strict undefined lookups and a
``from_json`` filter. Any string field of a task can be rendered against the
variable context; vars values additionally go through JSON coercion when
their source text asks for it.
"""

import json
import logging
from typing import Any

import jinja2

from .context import VariableContext
from .exceptions import (
    InvalidJsonError,
    TemplateEvaluationError,
    TemplateSyntaxError,
    UndefinedVariableError,
)

logger = logging.getLogger(__name__)

FROM_JSON = "from_json"


def from_json_filter(value: Any) -> Any:
    """Mark a value for JSON decoding.

    The filter itself is the identity; decoding happens in render_and_coerce
    after the whole template has been rendered.
    """
    return value


def create_environment() -> jinja2.Environment:
    """Create the Jinja2 environment used for every render."""
    env = jinja2.Environment(undefined=jinja2.StrictUndefined, autoescape=False)
    env.filters[FROM_JSON] = from_json_filter
    return env


_environment = create_environment()


def render(template: str, context: VariableContext) -> str:
    """Render a template string against the variable context.

    Args:
        template: Template source text
        context: Variables visible to the template

    Returns:
        The rendered text

    Raises:
        UndefinedVariableError: If the template references an unknown name
        TemplateSyntaxError: If the template is not valid syntax
        TemplateEvaluationError: If evaluating an expression fails, e.g.
            adding a string to a number
    """
    try:
        compiled = _environment.from_string(template)
        return compiled.render(context.as_dict())
    except jinja2.UndefinedError as e:
        logger.debug(f"Undefined variable in template {template!r}: {e}")
        raise UndefinedVariableError(template, context.names()) from e
    except jinja2.TemplateError as e:
        raise TemplateSyntaxError(template, str(e)) from e
    except Exception as e:
        raise TemplateEvaluationError(template, f"{type(e).__name__}: {e}") from e


def render_and_coerce(template: str, context: VariableContext) -> Any:
    """Render a vars value, decoding JSON when the source uses from_json.

    The decision is made on the template source text, not on the rendered
    output: ``"{{ out.stdout | from_json }}"`` yields a structured value,
    ``"{{ out.stdout }}"`` always yields a string.

    Raises:
        InvalidJsonError: If from_json was requested and the rendered text
            is not valid JSON
    """
    rendered = render(template, context)

    if FROM_JSON not in template:
        return rendered

    try:
        return json.loads(rendered)
    except json.JSONDecodeError as e:
        raise InvalidJsonError(template, rendered, str(e)) from e


def evaluate_condition(condition: str | None, context: VariableContext) -> bool:
    """Evaluate a ``when`` expression.

    An absent condition is true. Otherwise the expression is rendered inside
    an if/else block and only the exact text ``"false"`` counts as false.
    """
    if condition is None:
        return True

    template = f"{{% if {condition} %}}true{{% else %}}false{{% endif %}}"
    return render(template, context) != "false"
