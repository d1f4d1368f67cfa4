"""
BloomFrame Backend — Template Renderer Tests
==============================================

What we test:
    ✅ Each failure stage: views_dir, template_file, parse, lookup, execute
    ✅ Partials included from the views directory
    ✅ The packaged invoice template renders a full view model
"""

import pytest

from bloomframe.config import DEFAULT_VIEWS_DIR
from bloomframe.exceptions import TemplateError
from bloomframe.services.template_service import TemplateService

MAIN = "invoice.preview.html"


class TestTemplateStages:

    def test_views_dir_missing(self, tmp_path, view_model):
        views = tmp_path / "missing"
        service = TemplateService(views / MAIN, views)
        with pytest.raises(TemplateError) as exc_info:
            service.render(view_model)
        assert exc_info.value.stage == "views_dir"
        assert exc_info.value.path == str(views / MAIN)
        assert exc_info.value.templates is None

    def test_template_file_missing(self, temp_views, view_model):
        service = TemplateService(temp_views / MAIN, temp_views)
        with pytest.raises(TemplateError) as exc_info:
            service.render(view_model)
        assert exc_info.value.stage == "template_file"
        assert "template file not found" in exc_info.value.details

    def test_parse_error_in_partial(self, temp_views, view_model):
        (temp_views / MAIN).write_text('{% include "broken.html" %}{{ invoice_no }}')
        (temp_views / "broken.html").write_text("{% if %}")
        service = TemplateService(temp_views / MAIN, temp_views)
        with pytest.raises(TemplateError) as exc_info:
            service.render(view_model)
        assert exc_info.value.stage == "parse"
        assert "broken.html" in exc_info.value.details

    def test_lookup_fails_for_non_html_template(self, temp_views, view_model):
        (temp_views / "invoice.txt").write_text("{{ invoice_no }}")
        (temp_views / "other.html").write_text("ok")
        service = TemplateService(temp_views / "invoice.txt", temp_views)
        with pytest.raises(TemplateError) as exc_info:
            service.render(view_model)
        assert exc_info.value.stage == "lookup"
        assert exc_info.value.templates == ["other.html"]
        assert exc_info.value.extra_fields()["templates"] == ["other.html"]

    def test_lookup_fails_outside_views_dir(self, tmp_path, temp_views, view_model):
        elsewhere = tmp_path / "elsewhere.html"
        elsewhere.write_text("{{ invoice_no }}")
        service = TemplateService(elsewhere, temp_views)
        with pytest.raises(TemplateError) as exc_info:
            service.render(view_model)
        assert exc_info.value.stage == "lookup"

    def test_execute_error_on_unknown_field(self, temp_views, view_model):
        (temp_views / MAIN).write_text("{{ customer_phone }}")
        service = TemplateService(temp_views / MAIN, temp_views)
        with pytest.raises(TemplateError) as exc_info:
            service.render(view_model)
        err = exc_info.value
        assert err.stage == "execute"
        assert err.templates == [MAIN]
        assert err.message == "Failed to render invoice."
        assert err.extra_fields() == {"path": str(temp_views / MAIN), "stage": "execute", "templates": [MAIN]}


class TestTemplateRendering:

    def test_renders_with_partial(self, temp_views, view_model):
        (temp_views / MAIN).write_text('{% include "header.html" %}|{% for row in rows %}{{ row.amount }}{% endfor %}')
        (temp_views / "header.html").write_text("No. {{ invoice_no }}")
        service = TemplateService(temp_views / MAIN)
        assert service.render(view_model) == "No. 1042|£100.00"

    def test_values_are_escaped(self, temp_views, view_model):
        (temp_views / MAIN).write_text("{{ address }}")
        view_model.address = "<script>"
        service = TemplateService(temp_views / MAIN, temp_views)
        assert service.render(view_model) == "&lt;script&gt;"

    def test_packaged_invoice_template(self, view_model):
        service = TemplateService(DEFAULT_VIEWS_DIR / MAIN, DEFAULT_VIEWS_DIR)
        html = service.render(view_model)
        assert "Invoice 1042" in html
        assert "Mrs Jane Doe<br>" in html
        assert "£120.00" in html
        assert "Notes" not in html
