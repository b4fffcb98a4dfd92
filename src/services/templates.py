"""
Email template management utilities.

Templates are Jinja2 plain text and HTML files packaged under
services/templates/. HTML templates are autoescaped; plain text templates
are rendered as-is. Compiled templates are cached in a module-level
environment for warm invocations.
"""

import logging
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateNotFound, UndefinedError, select_autoescape

logger = logging.getLogger(__name__)

# src/services/templates.py -> src/services/templates/
TEMPLATES_DIR = Path(__file__).parent / 'templates'

# Module-level environment; holds the compiled template cache
_environment: Optional[Environment] = None


def _create_environment() -> Environment:
    logger.debug(f"Loading email templates from: {TEMPLATES_DIR}")
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(['html']),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        auto_reload=False,
    )


def get_environment() -> Environment:
    """Return the shared Jinja2 environment, creating it on first use."""
    global _environment
    if _environment is None:
        _environment = _create_environment()
    return _environment


def load_template(template_name: str) -> Template:
    """
    Load a compiled email template.

    Args:
        template_name: Template file name (e.g., "owner_notification.html")

    Returns:
        Template: Compiled Jinja2 template

    Raises:
        ValueError: If template not found
    """
    try:
        return get_environment().get_template(template_name)
    except TemplateNotFound:
        logger.error(
            f"Template not found: {template_name}. "
            f"Expected location: {TEMPLATES_DIR / template_name}"
        )
        raise ValueError(f"Template '{template_name}' not found")


def render_template(template_name: str, **variables) -> str:
    """
    Render a template with the given variables.

    Args:
        template_name: Template file name
        **variables: Values for the template placeholders

    Returns:
        str: Rendered template

    Raises:
        ValueError: If the template is missing or a placeholder has no value

    Example:
        >>> render_template("auto_reply.html", name="<Ada>", subject="Hi", owner_name="Sam")
        '...Hello <strong>&lt;Ada&gt;</strong>...'
    """
    template = load_template(template_name)

    try:
        return template.render(**variables)
    except UndefinedError as e:
        logger.error(f"Missing variable in template {template_name}: {e}")
        raise ValueError(f"Missing required variable in template: {e}")


def clear_cache() -> None:
    """Drop the environment and its compiled templates."""
    global _environment
    _environment = None
    logger.info("Template cache cleared")
