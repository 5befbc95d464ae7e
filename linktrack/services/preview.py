"""
Preview document rendering for crawler requests.

The page carries Open Graph and Twitter card tags only; crawlers never follow
it further. Values are autoescaped by Jinja2.
"""

import os

from jinja2 import Environment, FileSystemLoader, select_autoescape

from linktrack.services.metadata.models import Metadata

_DEFAULT_TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")


class PreviewRenderer:

    def __init__(self, template_dir: str = _DEFAULT_TEMPLATE_DIR):
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def render(self, metadata: Metadata, url: str, site_name: str) -> str:
        template = self._jinja.get_template("preview.html")
        return template.render(metadata=metadata, url=url, site_name=site_name)
