"""Starter templates offered for download."""

from protohub.templates.registry import (
    TEMPLATES,
    StarterTemplate,
    get_template,
    list_templates,
    render_template_zip,
)

__all__ = ["TEMPLATES", "StarterTemplate", "get_template", "list_templates", "render_template_zip"]
