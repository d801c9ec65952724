"""
Featured recipe star toggle from the recipes admin list
"""

import logging
from typing import Callable, List, Optional

import requests
from bs4 import Tag
from pydantic import ValidationError

from .config import Settings, get_settings
from .constants import (
    STAR_ICON_CLASSES,
    TOGGLE_BUTTON_SELECTOR,
    TOGGLE_FEATURED_ACTION,
    TOGGLE_TRANSPORT_ERROR_MESSAGE,
    TOGGLE_UNKNOWN_ERROR_MESSAGE,
)
from .exceptions import ToggleError
from .models import ToggleResponseData
from .page import FilterPage

logger = logging.getLogger(__name__)

DIMMED = '0.5'
OPAQUE = '1'


def _set_opacity(icon: Tag, value: str) -> None:
    parts = [p.strip() for p in (icon.get('style') or '').split(';') if p.strip()]
    parts = [p for p in parts if not p.replace(' ', '').startswith('opacity:')]
    parts.append(f'opacity: {value}')
    icon['style'] = '; '.join(parts) + ';'


def icon_opacity(icon: Tag) -> Optional[str]:
    for part in (icon.get('style') or '').split(';'):
        key, _, value = part.partition(':')
        if key.strip() == 'opacity':
            return value.strip()
    return None


class FeaturedToggle:
    """
    Click handler for a.toggle-featured-status links.

    The alert callback receives every user-facing message; by default it only
    logs, the way a headless browser would swallow window.alert().
    """

    def __init__(
        self,
        ajax_url: str,
        session: Optional[requests.Session] = None,
        alert: Optional[Callable[[str], None]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.ajax_url = ajax_url
        self.session = session or requests.Session()
        self.alert = alert or (lambda message: logger.warning(f"Alert: {message}"))

    def _post(self, button: Tag) -> dict:
        post_id = button.get('data-postid')
        data = {
            'action': TOGGLE_FEATURED_ACTION,
            'post_id': post_id,
            'new_status': button.get('data-status'),
            'nonce': button.get('data-nonce', ''),
        }
        try:
            response = self.session.post(self.ajax_url, data=data, timeout=self.settings.request_timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise ToggleError(post_id, str(e)) from e

    def click(self, button: Tag) -> Optional[bool]:
        """
        Toggle one recipe.

        Returns True on success, False when the server or network refused,
        and None when the click was ignored because a request is in flight.
        """
        classes = button.get('class') or []
        if 'processing' in classes:
            logger.debug(f"Ignoring click on post {button.get('data-postid')}: request in flight")
            return None

        button['class'] = classes + ['processing']
        icon = button.find(class_='dashicons')
        if icon is not None:
            _set_opacity(icon, DIMMED)

        try:
            try:
                payload = self._post(button)
            except ToggleError as e:
                logger.error(f"AJAX Error: {e}")
                self.alert(TOGGLE_TRANSPORT_ERROR_MESSAGE)
                return False

            if not isinstance(payload, dict) or not payload.get('success'):
                data = payload.get('data') if isinstance(payload, dict) else None
                message = data.get('message') if isinstance(data, dict) else None
                self.alert(f"Error: {message or TOGGLE_UNKNOWN_ERROR_MESSAGE}")
                return False

            try:
                result = ToggleResponseData.model_validate(payload.get('data') or {})
            except ValidationError as e:
                logger.error(f"Malformed toggle response for post {button.get('data-postid')}: {e}")
                self.alert(f"Error: {TOGGLE_UNKNOWN_ERROR_MESSAGE}")
                return False

            if icon is not None:
                icon['class'] = [c for c in (icon.get('class') or []) if c not in STAR_ICON_CLASSES] + [result.new_icon]
            button['title'] = result.new_title
            # Next click asks for the opposite of what the server just stored
            button['data-status'] = '0' if result.new_status == '1' else '1'
            logger.info(f"Post {button.get('data-postid')} featured status is now {result.new_status}")
            return True
        finally:
            if icon is not None:
                _set_opacity(icon, OPAQUE)
            button['class'] = [c for c in (button.get('class') or []) if c != 'processing']


def toggle_buttons(page: FilterPage) -> List[Tag]:
    return page.soup.select(TOGGLE_BUTTON_SELECTOR)
