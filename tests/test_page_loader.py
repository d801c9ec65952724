"""
Unit tests for page loading and localized script configuration.
"""

from unittest.mock import MagicMock

import pytest
import requests

from conftest import RECIPES_PAGE
from handy_custom.config import Settings
from handy_custom.exceptions import TransportError
from handy_custom.page_loader import (
    load_page,
    page_from_html,
    parse_localized_objects,
    resolve_filter_config,
    resolve_toggle_ajax_url,
)

SCRIPTS = """
<script type="text/javascript" id="handy-custom-filters-js-extra">
/* <![CDATA[ */
var handyCustomFiltersAjax = {"ajaxUrl":"https:\\/\\/shop.example.com\\/wp-admin\\/admin-ajax.php","nonce":"f1lt3r","debug":"1"};
/* ]]> */
</script>
<script>
var handyCustomAjax = {"ajaxUrl":"https://legacy.example.com/ajax","nonce":"legacy","debug":""};
var notConfig = [1, 2, 3];
var broken = {"unterminated": ;
</script>
"""


class TestParseLocalizedObjects:
    """Tests for reading wp_localize_script output"""

    def test_reads_objects(self):
        objects = parse_localized_objects(SCRIPTS)
        assert set(objects) == {"handyCustomFiltersAjax", "handyCustomAjax"}
        assert objects["handyCustomFiltersAjax"]["ajaxUrl"] == "https://shop.example.com/wp-admin/admin-ajax.php"

    def test_no_scripts(self):
        assert parse_localized_objects("<html><body></body></html>") == {}


class TestResolveFilterConfig:
    """Tests for ajax URL / nonce resolution order"""

    def test_first_localized_object_wins(self, settings):
        config = resolve_filter_config(parse_localized_objects(SCRIPTS), settings)
        assert config.ajax_url == "https://shop.example.com/wp-admin/admin-ajax.php"
        assert config.nonce == "f1lt3r"
        assert config.debug is True

    def test_falls_back_to_legacy_object(self, settings):
        objects = parse_localized_objects(SCRIPTS)
        del objects["handyCustomFiltersAjax"]
        config = resolve_filter_config(objects, settings)
        assert config.ajax_url == "https://legacy.example.com/ajax"
        assert config.nonce == "legacy"
        assert config.debug is False

    def test_settings_override(self):
        settings = Settings(_env_file=None, ajax_url="https://override.example.com/ajax", nonce="mine")
        config = resolve_filter_config(parse_localized_objects(SCRIPTS), settings)
        assert config.ajax_url == "https://override.example.com/ajax"
        assert config.nonce == "mine"

    def test_default_ajax_url(self, settings):
        config = resolve_filter_config({}, settings)
        assert config.ajax_url == "https://example.com/wp-admin/admin-ajax.php"
        assert config.nonce == ""

    def test_toggle_ajax_url(self, settings):
        objects = {"adminRecipeFeaturedToggle": {"ajax_url": "https://example.com/wp-admin/admin-ajax.php?x=1"}}
        assert resolve_toggle_ajax_url(objects, settings).endswith("?x=1")
        assert resolve_toggle_ajax_url({}, settings) == "https://example.com/wp-admin/admin-ajax.php"


class TestLoadPage:
    """Tests for load_page with a mocked requests session"""

    def _response(self, text, url, status=200):
        response = MagicMock()
        response.text = text
        response.url = url
        response.status_code = status
        return response

    def test_loads_page_and_config(self, settings):
        session = MagicMock()
        session.get.return_value = self._response(
            RECIPES_PAGE + SCRIPTS, "https://example.com/recipes/?category=soups"
        )

        loaded = load_page("https://example.com/recipes?category=soups", settings, session=session)

        assert loaded.page.url == "https://example.com/recipes/?category=soups"
        assert loaded.page.content_types() == ["recipes"]
        assert loaded.config.nonce == "f1lt3r"
        _, kwargs = session.get.call_args
        assert kwargs["headers"]["User-Agent"] == settings.user_agent
        assert kwargs["timeout"] == settings.request_timeout

    def test_retries_connection_errors(self, settings):
        session = MagicMock()
        session.get.side_effect = [
            requests.ConnectionError("reset"),
            self._response(RECIPES_PAGE, "https://example.com/recipes/"),
        ]

        loaded = load_page("https://example.com/recipes/", settings, session=session)

        assert session.get.call_count == 2
        assert loaded.config.ajax_url == "https://example.com/wp-admin/admin-ajax.php"

    def test_gives_up_after_retries(self):
        settings = Settings(_env_file=None, page_retries=1)
        session = MagicMock()
        session.get.side_effect = requests.Timeout("slow")

        with pytest.raises(TransportError):
            load_page("https://example.com/recipes/", settings, session=session)
        assert session.get.call_count == 1

    def test_http_error_status(self, settings):
        session = MagicMock()
        session.get.return_value = self._response("Not Found", "https://example.com/nope/", status=404)

        with pytest.raises(TransportError) as exc:
            load_page("https://example.com/nope/", settings, session=session)
        assert exc.value.status_code == 404


def test_page_from_html_without_scripts(settings):
    loaded = page_from_html(RECIPES_PAGE, "https://example.com/recipes/", settings)
    assert loaded.objects == {}
    assert loaded.page.archive_container("recipes") is not None
