"""
Load an archive page over HTTP and read the script configuration that
WordPress prints next to it with wp_localize_script().
"""

import json
import logging
import re
from typing import Any, Dict, Optional

import requests

from .config import Settings, get_settings
from .constants import LOCALIZED_FILTER_OBJECTS, LOCALIZED_TOGGLE_OBJECT
from .exceptions import TransportError
from .models import LocalizedConfig
from .page import FilterPage
from .retry import with_retry

logger = logging.getLogger(__name__)

LOCALIZED_VAR_RE = re.compile(r'\bvar\s+([A-Za-z_$][\w$]*)\s*=\s*(?=\{)')


def parse_localized_objects(html: str) -> Dict[str, Dict[str, Any]]:
    """
    Find `var name = {...};` assignments and decode their JSON objects.

    wp_localize_script() writes plain JSON, so a JSON decoder can read the
    object literal directly; anything that fails to decode is skipped.
    """
    decoder = json.JSONDecoder()
    objects: Dict[str, Dict[str, Any]] = {}
    for match in LOCALIZED_VAR_RE.finditer(html):
        try:
            value, _ = decoder.raw_decode(html, match.end())
        except ValueError:
            logger.debug(f"Could not decode localized object {match.group(1)}")
            continue
        if isinstance(value, dict):
            objects[match.group(1)] = value
    return objects


def _truthy(value: Any) -> bool:
    # wp_localize_script casts scalars to strings: true -> "1", false -> ""
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes')
    return bool(value)


def resolve_filter_config(objects: Dict[str, Dict[str, Any]], settings: Optional[Settings] = None) -> LocalizedConfig:
    """
    Pick the ajax URL, nonce and debug flag for the filter scripts.

    Settings overrides win, then the first localized object that carries the
    value, then the site's default admin-ajax.php with an empty nonce.
    """
    settings = settings or get_settings()
    ajax_url = settings.ajax_url
    nonce = settings.nonce
    debug = False
    raw: Dict[str, Any] = {}

    for name in LOCALIZED_FILTER_OBJECTS:
        obj = objects.get(name)
        if not obj:
            continue
        raw[name] = obj
        ajax_url = ajax_url or obj.get('ajaxUrl') or obj.get('ajax_url')
        nonce = nonce or obj.get('nonce')
        debug = debug or _truthy(obj.get('debug'))

    return LocalizedConfig(
        ajax_url=ajax_url or settings.default_ajax_url,
        nonce=nonce or '',
        debug=debug,
        raw=raw,
    )


def resolve_toggle_ajax_url(objects: Dict[str, Dict[str, Any]], settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    obj = objects.get(LOCALIZED_TOGGLE_OBJECT) or {}
    return settings.ajax_url or obj.get('ajax_url') or settings.default_ajax_url


class LoadedPage:
    """A fetched page plus the filter configuration printed on it"""

    def __init__(self, page: FilterPage, config: LocalizedConfig, objects: Dict[str, Dict[str, Any]]):
        self.page = page
        self.config = config
        self.objects = objects


def page_from_html(html: str, url: str = '', settings: Optional[Settings] = None) -> LoadedPage:
    objects = parse_localized_objects(html)
    config = resolve_filter_config(objects, settings)
    logger.info(f"Page {url or '<inline>'}: ajax url {config.ajax_url}, "
                f"localized objects {sorted(objects) or 'none'}")
    return LoadedPage(FilterPage(html, url=url), config, objects)


def load_page(url: str, settings: Optional[Settings] = None, session: Optional[requests.Session] = None) -> LoadedPage:
    """GET an archive page, retrying connection failures"""
    settings = settings or get_settings()
    http = session or requests.Session()

    @with_retry(max_attempts=settings.page_retries)
    def _get() -> requests.Response:
        return http.get(url, headers={'User-Agent': settings.user_agent}, timeout=settings.request_timeout)

    try:
        response = _get()
    except requests.RequestException as e:
        raise TransportError(f"Could not load {url}: {e}") from e

    if response.status_code >= 400:
        raise TransportError(f"HTTP {response.status_code} loading {url}", status_code=response.status_code)

    # Redirects (e.g. trailing slash) change the address the filters start from
    return page_from_html(response.text, url=response.url or url, settings=settings)
