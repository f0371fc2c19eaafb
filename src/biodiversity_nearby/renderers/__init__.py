"""Pure rendering functions: records -> marker payload / HTML strings.

All renderers follow the same pattern:
  - Input: pydantic models or dicts (from sync/ or enrichment/)
  - Output: plain data or str
  - No side effects, no I/O, no Prefect decorators

Used by flows/nearby.py, which writes the results into the site directory.

Public API:
  - markers: kingdom_color, build_markers
  - occurrence_map: build_map_html

Adding a renderer (UI module)
-----------------------------
1. Create ``renderers/{name}.py`` with a build function::

       from biodiversity_nearby.renderers import render_template

       def build_mywidget_html(data: dict[str, Any]) -> str:
           rows = [...]
           return render_template("mywidget.html.j2", rows=rows)

2. Create a Jinja2 template in ``templates/{name}.html.j2``.

3. Wire into ``flows/nearby.py`` and add tests that call the build function
   with sample data and assert on the returned content.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jinja2

# Shared Jinja2 environment for all renderers
_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_jinja_env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=True,
)


def render_template(template_name: str, **kwargs: Any) -> str:
    """Render a Jinja2 template by name."""
    return _jinja_env.get_template(template_name).render(**kwargs)
