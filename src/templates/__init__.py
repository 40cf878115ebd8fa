"""
Jinja2 templates for human-readable reports.

Use render() to fill a template from this directory.
"""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from core.standards import standard_label

_TEMPLATES_DIR = Path(__file__).parent

_env = Environment(
    loader=FileSystemLoader(_TEMPLATES_DIR),
    autoescape=False,  # Plain-text terminal output
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)
_env.filters["standard"] = standard_label


def render(template_name: str, **kwargs) -> str:
    """Render a template with given parameters.

    Args:
        template_name: Path relative to the templates dir (e.g., "report.j2")
        **kwargs: Template variables

    Returns:
        Rendered text
    """
    template = _env.get_template(template_name)
    return template.render(**kwargs)
