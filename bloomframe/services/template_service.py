"""
BloomFrame Backend — Invoice Template Renderer
================================================

What:  Renders the invoice view model into HTML with Jinja2.
How:   Every *.html file in the views directory is loaded and compiled
       before rendering, so includes such as {% include "invoice.styles.html" %}
       resolve and a syntax error in any partial is reported up front.
       StrictUndefined turns a view-model field missing from the context
       into an error instead of an empty string.

Failure stages (TemplateError.stage), checked in this order:
    views_dir → template_file → parse → lookup → execute
"""

import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateSyntaxError,
    select_autoescape,
)
from jinja2 import TemplateError as JinjaTemplateError

from bloomframe.config import settings
from bloomframe.exceptions import TemplateError
from bloomframe.services.invoice_builder import InvoiceViewModel

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSIONS = ("html",)


class TemplateService:
    """
    Renders one configured template out of a views directory.

    Args:
        template_path: The template to render.
        views_dir:     Directory holding it and its partials; defaults to
                       the template's own directory.
    """

    def __init__(self, template_path: Path, views_dir: Optional[Path] = None):
        self.template_path = Path(template_path)
        self.views_dir = Path(views_dir) if views_dir is not None else self.template_path.parent

    def _environment(self) -> Environment:
        return Environment(
            loader=FileSystemLoader(str(self.views_dir)),
            undefined=StrictUndefined,
            autoescape=select_autoescape(enabled_extensions=TEMPLATE_EXTENSIONS, default=True),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _template_name(self) -> Optional[str]:
        try:
            return self.template_path.relative_to(self.views_dir).as_posix()
        except ValueError:
            return None

    def render(self, view_model: InvoiceViewModel) -> str:
        """
        Renders the template with the view model's fields as context.

        Raises:
            TemplateError: tagged with the failing stage, the template path
                and (after the views directory was read) its template names.
        """
        path = str(self.template_path)

        if not self.views_dir.is_dir():
            raise TemplateError("views_dir", f"views dir not found: {self.views_dir}", path)
        if not self.template_path.is_file():
            raise TemplateError("template_file", f"template file not found: {path}", path)

        env = self._environment()
        names: List[str] = env.list_templates(extensions=TEMPLATE_EXTENSIONS)

        for name in names:
            try:
                env.get_template(name)
            except TemplateSyntaxError as exc:
                raise TemplateError(
                    "parse",
                    f"template parse failed: {exc.name or name} line {exc.lineno}: {exc.message}",
                    path,
                ) from exc

        main_name = self._template_name()
        if main_name is None or main_name not in names:
            raise TemplateError(
                "lookup",
                f"template {self.template_path.name!r} not found among parsed templates: {names}",
                path,
                templates=names,
            )

        try:
            return env.get_template(main_name).render(**asdict(view_model))
        except JinjaTemplateError as exc:
            logger.error("Invoice template %s failed to execute: %s", main_name, exc)
            raise TemplateError(
                "execute",
                f"render {main_name} failed: {exc}",
                path,
                templates=names,
            ) from exc


template_service = TemplateService(settings.invoice_template_path, Path(settings.views_dir))
