"""
Template rendering utilities
"""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from lowcode_server.codegen.naming import camel_case, kebab_case, pascal_case

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent / "static"

# Generated code is not HTML, so no autoescaping
jinja_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=False,
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)
jinja_env.filters["pascal"] = pascal_case
jinja_env.filters["camel"] = camel_case
jinja_env.filters["kebab"] = kebab_case


def render_template(template_name: str, **context) -> str:
    """Render a code template with context"""
    return jinja_env.get_template(template_name).render(**context)
