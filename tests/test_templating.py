"""Tests for template rendering and JSON coercion."""

import json

import pytest

from deploy_helper.context import VariableContext
from deploy_helper.exceptions import (
    InvalidJsonError,
    RenderError,
    TemplateEvaluationError,
    TemplateSyntaxError,
    UndefinedVariableError,
)
from deploy_helper.templating import evaluate_condition, render, render_and_coerce


class TestRender:
    """Tests for render()."""

    def test_plain_text(self):
        assert render("hello", VariableContext()) == "hello"

    def test_variable_substitution(self):
        ctx = VariableContext({"name": "world"})
        assert render("hello {{ name }}", ctx) == "hello world"

    def test_expression(self):
        assert render("{{ 1 + 1 }}", VariableContext()) == "2"

    def test_dot_access_on_register_value(self):
        ctx = VariableContext({"out": {"stdout": "ok", "stderr": "", "rc": 0}})
        assert render("{{ out.stdout }} rc={{ out.rc }}", ctx) == "ok rc=0"

    def test_undefined_variable_is_an_error(self):
        ctx = VariableContext({"known": 1, "other": 2})
        with pytest.raises(UndefinedVariableError) as exc_info:
            render("{{ missing }}", ctx)

        error = exc_info.value
        assert error.template == "{{ missing }}"
        assert error.available == ["known", "other"]
        assert "{{ missing }}" in str(error)
        assert "known" in str(error)

    def test_undefined_attribute_is_an_error(self):
        ctx = VariableContext({"data": {"a": 1}})
        with pytest.raises(UndefinedVariableError):
            render("{{ data.b }}", ctx)

    def test_syntax_error(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            render("{{ unclosed", VariableContext())
        assert exc_info.value.template == "{{ unclosed"

    def test_errors_share_base_class(self):
        with pytest.raises(RenderError):
            render("{% if %}", VariableContext())

    @pytest.mark.parametrize("template", ["{{ 'a' + 1 }}", "{{ 1 / 0 }}"])
    def test_evaluation_error(self, template):
        with pytest.raises(TemplateEvaluationError) as exc_info:
            render(template, VariableContext())

        assert exc_info.value.template == template
        assert str(exc_info.value).startswith("Error rendering template")
        assert isinstance(exc_info.value, RenderError)

    def test_from_json_filter_is_identity(self):
        ctx = VariableContext({"raw": '{"a": 1}'})
        assert render("{{ raw | from_json }}", ctx) == '{"a": 1}'


class TestRenderAndCoerce:
    """Tests for render_and_coerce()."""

    def test_plain_value_stays_string(self):
        ctx = VariableContext({"n": 5})
        assert render_and_coerce("{{ n }}", ctx) == "5"

    def test_json_looking_value_without_filter_stays_string(self):
        ctx = VariableContext({"raw": '{"a": 1}'})
        assert render_and_coerce("{{ raw }}", ctx) == '{"a": 1}'

    def test_from_json_matches_direct_parse(self):
        raw = '{"Credentials": {"AccessKeyId": "abc", "Keys": [1, 2, null]}, "ok": true}'
        ctx = VariableContext({"raw": raw})

        assert render_and_coerce("{{ raw | from_json }}", ctx) == json.loads(raw)

    def test_from_json_on_literal(self):
        value = render_and_coerce("{{ '[1, 2, 3]' | from_json }}", VariableContext())
        assert value == [1, 2, 3]

    def test_invalid_json(self):
        ctx = VariableContext({"raw": "not json"})
        with pytest.raises(InvalidJsonError) as exc_info:
            render_and_coerce("{{ raw | from_json }}", ctx)

        error = exc_info.value
        assert error.template == "{{ raw | from_json }}"
        assert error.rendered == "not json"
        assert error.details["reason"]


class TestEvaluateCondition:
    """Tests for evaluate_condition()."""

    def test_absent_condition_is_true(self):
        assert evaluate_condition(None, VariableContext()) is True

    def test_true_condition(self):
        assert evaluate_condition("x == '1'", VariableContext({"x": "1"})) is True

    def test_false_condition(self):
        assert evaluate_condition("x == '2'", VariableContext({"x": "1"})) is False

    def test_register_rc_condition(self):
        ctx = VariableContext({"out": {"stdout": "", "stderr": "", "rc": 0}})
        assert evaluate_condition("out.rc == 0", ctx) is True

    def test_undefined_name_in_condition_raises(self):
        with pytest.raises(UndefinedVariableError):
            evaluate_condition("x == 1", VariableContext())

    def test_failing_condition_raises(self):
        with pytest.raises(TemplateEvaluationError):
            evaluate_condition("x + 1 > 0", VariableContext({"x": "a"}))
