"""Reusable message templates with ``{{variable}}`` placeholders."""

import threading
from collections.abc import Mapping

from pydantic import BaseModel, field_validator

from notifyflow.core.errors import TemplateNotFoundError

PLACEHOLDER_PREFIX = "{{"
PLACEHOLDER_SUFFIX = "}}"


class Template(BaseModel):
    """Named template string.

    Attributes:
        name: Non-empty identifier used for lookup.
        template: Text containing ``{{key}}`` placeholders.
    """

    name: str
    template: str

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure name is non-empty after whitespace stripping."""
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    def render(self, variables: Mapping[str, object]) -> str:
        """Replace every ``{{key}}`` with ``str(variables[key])``.

        Placeholders without a matching variable are left untouched.
        """
        rendered = self.template
        for key, value in variables.items():
            rendered = rendered.replace(f"{PLACEHOLDER_PREFIX}{key}{PLACEHOLDER_SUFFIX}", str(value))
        return rendered


class TemplateRegistry:
    """Thread-safe store of templates by name. Registering a name again replaces it."""

    def __init__(self) -> None:
        self._templates: dict[str, Template] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def register(self, name: str, template: str) -> "TemplateRegistry":
        entry = Template(name=name, template=template)
        with self._lock:
            self._templates[entry.name] = entry
        return self

    def get(self, name: str) -> Template | None:
        return self._templates.get(name)

    def render(self, name: str, variables: Mapping[str, object]) -> str:
        """Render the template registered as ``name``.

        Raises:
            TemplateNotFoundError: If no template has that name.
        """
        template = self.get(name)
        if template is None:
            raise TemplateNotFoundError(name)
        return template.render(variables)
