"""Tests for templates and the template registry."""

import pytest
from pydantic import ValidationError

from notifyflow.core.errors import TemplateNotFoundError
from notifyflow.templates import Template, TemplateRegistry


class TestTemplate:
    def test_render_replaces_placeholders(self):
        template = Template(name="welcome", template="Hello {{name}}, you have {{count}} new messages")
        assert template.render({"name": "Alice", "count": 3}) == "Hello Alice, you have 3 new messages"

    def test_repeated_placeholder(self):
        template = Template(name="echo", template="{{word}} {{word}}")
        assert template.render({"word": "hi"}) == "hi hi"

    def test_unknown_placeholders_left_untouched(self):
        template = Template(name="partial", template="Hi {{name}}, code {{code}}")
        assert template.render({"name": "Bob"}) == "Hi Bob, code {{code}}"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, name):
        with pytest.raises(ValidationError):
            Template(name=name, template="x")

    def test_name_stripped(self):
        assert Template(name="  otp  ", template="x").name == "otp"


class TestTemplateRegistry:
    def test_register_is_chainable(self):
        registry = TemplateRegistry().register("a", "A").register("b", "B")
        assert len(registry) == 2
        assert "a" in registry and "b" in registry

    def test_register_replaces_existing(self):
        registry = TemplateRegistry().register("otp", "old").register("otp", "Code: {{code}}")
        assert len(registry) == 1
        assert registry.render("otp", {"code": "1234"}) == "Code: 1234"

    def test_get_missing_returns_none(self):
        assert TemplateRegistry().get("missing") is None

    def test_render_missing_raises(self):
        with pytest.raises(TemplateNotFoundError, match="Template not found: missing"):
            TemplateRegistry().render("missing", {})

    def test_not_found_is_lookup_error(self):
        with pytest.raises(LookupError):
            TemplateRegistry().render("missing", {})
