"""
Page document model for the filter markup contract.

A FilterPage wraps a BeautifulSoup document the way the browser DOM is used
by the filter scripts: find the filter containers, read and write select
values, swap archive markup, toggle the loading indicator and error banner,
and dispatch delegated events.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

import soupsieve
from bs4 import BeautifulSoup, Tag

from .constants import (
    ARCHIVE_SELECTORS,
    DEFAULT_DISPLAY_MODE,
    ERROR_BANNER_CLASSES,
    FILTER_CONTAINER_SELECTOR,
    LEGACY_CLEAR_BUTTON_SELECTOR,
    LOADING_SELECTOR,
)
from .models import ContextBoundary, FilterOption

logger = logging.getLogger(__name__)

HIDDEN_STYLE = 'display: none;'

Handler = Callable[..., Any]


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, 'html.parser')


def closest(tag: Tag, selector: str) -> Optional[Tag]:
    """Nearest ancestor-or-self matching selector"""
    node = tag
    while isinstance(node, Tag) and not isinstance(node, BeautifulSoup):
        if soupsieve.match(selector, node):
            return node
        node = node.parent
    return None


def is_hidden(tag: Tag) -> bool:
    style = (tag.get('style') or '').replace(' ', '').lower()
    return 'display:none' in style


def show(tag: Tag) -> None:
    style = (tag.get('style') or '')
    cleaned = ';'.join(
        part for part in style.split(';')
        if part.strip() and part.replace(' ', '').lower() != 'display:none'
    )
    if cleaned:
        tag['style'] = cleaned + ';'
    elif tag.has_attr('style'):
        del tag['style']


def hide(tag: Tag) -> None:
    show(tag)
    style = tag.get('style')
    tag['style'] = f"{style} {HIDDEN_STYLE}" if style else HIDDEN_STYLE


def select_name(select: Tag) -> str:
    return select.get('name', '')


def select_options(select: Tag) -> List[Tag]:
    return select.find_all('option')


def option_value(option: Tag) -> str:
    # An <option> without a value attribute submits its text
    value = option.get('value')
    return value if value is not None else option.get_text(strip=True)


def get_select_value(select: Tag) -> str:
    """Value the browser would report for a single-choice <select>"""
    options = select_options(select)
    for option in options:
        if option.has_attr('selected'):
            return option_value(option)
    return option_value(options[0]) if options else ''


def set_select_value(select: Tag, value: Optional[str]) -> bool:
    """
    Select the first option carrying `value`.

    Returns False when no option matches; the select then falls back to its
    placeholder, which is what jQuery's .val() leaves visible.
    """
    value = value or ''
    matched = False
    for option in select_options(select):
        if not matched and option_value(option) == value:
            option['selected'] = 'selected'
            matched = True
        elif option.has_attr('selected'):
            del option['selected']
    return matched


def has_option(select: Tag, value: str) -> bool:
    return any(option_value(o) == value for o in select_options(select))


def update_select_state(select: Tag, value: Optional[str]) -> None:
    """data-has-value="true" marks a select with an active filter"""
    if value and value.strip() != '':
        select['data-has-value'] = 'true'
    elif select.has_attr('data-has-value'):
        del select['data-has-value']


def replace_options(select: Tag, soup: BeautifulSoup, options: List[FilterOption]) -> None:
    """Keep the leading "All ..." placeholder, replace everything after it"""
    existing = select_options(select)
    for option in existing[1:]:
        option.decompose()
    for term in options:
        new_option = soup.new_tag('option', value=term.slug)
        new_option.string = term.name
        select.append(new_option)


class FilterPage:
    """The filter-relevant parts of one rendered page"""

    def __init__(self, html: str, url: str = ''):
        self.soup = parse_html(html)
        self.url = url
        self._delegated: Dict[str, List[tuple]] = defaultdict(list)
        self._listeners: Dict[str, List[Handler]] = defaultdict(list)

    # -- lookups ---------------------------------------------------------

    def filter_containers(self) -> List[Tag]:
        return self.soup.select(FILTER_CONTAINER_SELECTOR)

    def filter_container(self, content_type: str) -> Optional[Tag]:
        return self.soup.select_one(f'{FILTER_CONTAINER_SELECTOR}[data-content-type="{content_type}"]')

    def content_types(self) -> List[str]:
        """Content types that have a filter container, in page order"""
        seen = []
        for container in self.filter_containers():
            content_type = container.get('data-content-type')
            if content_type and content_type not in seen:
                seen.append(content_type)
        return seen

    def selects(self, content_type: Optional[str] = None) -> List[Tag]:
        if content_type is None:
            return self.soup.select(f'{FILTER_CONTAINER_SELECTOR} .filter-select')
        container = self.filter_container(content_type)
        return container.select('.filter-select') if container else []

    def find_select(self, content_type: str, name: str) -> Optional[Tag]:
        container = self.filter_container(content_type)
        if container is None:
            return None
        for select in container.find_all('select'):
            if select.get('name') == name:
                return select
        return None

    def select_content_type(self, select: Tag) -> Optional[str]:
        """data-content-type of the select, else of its filter container"""
        content_type = select.get('data-content-type')
        if content_type:
            return content_type
        container = closest(select, FILTER_CONTAINER_SELECTOR)
        return container.get('data-content-type') if container else None

    def context_boundary(self, content_type: str) -> ContextBoundary:
        container = self.filter_container(content_type)
        if container is None:
            return ContextBoundary()
        return ContextBoundary(
            context_category=container.get('data-context-category') or '',
            context_subcategory=container.get('data-context-subcategory') or '',
        )

    def archive_container(self, content_type: str) -> Optional[Tag]:
        selector = ARCHIVE_SELECTORS.get(content_type)
        return self.soup.select_one(selector) if selector else None

    def display_mode(self, content_type: str) -> Optional[str]:
        if content_type != 'products':
            return None
        container = self.archive_container(content_type)
        if container is None:
            return None
        return container.get('data-display-mode') or DEFAULT_DISPLAY_MODE

    def filter_values(self, content_type: str) -> Dict[str, str]:
        return {select_name(s): get_select_value(s) for s in self.selects(content_type)}

    # -- mutations -------------------------------------------------------

    def replace_archive(self, content_type: str, html: str) -> Optional[Tag]:
        """Swap the archive container for the server markup wholesale"""
        container = self.archive_container(content_type)
        if container is None:
            return None
        fragment = parse_html(html)
        nodes = list(fragment.contents)
        if not nodes:
            container.decompose()
            return None
        first = nodes[0].extract()
        container.replace_with(first)
        anchor = first
        for node in nodes[1:]:
            node = node.extract()
            anchor.insert_after(node)
            anchor = node
        return self.archive_container(content_type)

    def set_loading(self, content_type: str, loading: bool) -> None:
        container = self.filter_container(content_type)
        if container is None:
            return
        for indicator in container.select(LOADING_SELECTOR):
            if loading:
                show(indicator)
            else:
                hide(indicator)
        for select in container.select('.filter-select'):
            if loading:
                select['disabled'] = 'disabled'
            elif select.has_attr('disabled'):
                del select['disabled']

    def is_loading(self, content_type: str) -> bool:
        container = self.filter_container(content_type)
        if container is None:
            return False
        return any(s.has_attr('disabled') for s in container.select('.filter-select'))

    def update_clear_button_visibility(self, container: Optional[Tag]) -> None:
        """Legacy clear buttons are only shown while a filter is active"""
        if container is None:
            return
        active = container.select('.filter-select[data-has-value="true"]')
        for button in container.select(LEGACY_CLEAR_BUTTON_SELECTOR):
            wrapper = button.parent
            if wrapper is None:
                continue
            if active:
                show(wrapper)
            else:
                hide(wrapper)

    def error_banner(self, create: bool = False) -> Optional[Tag]:
        banner = self.soup.select_one('.' + ERROR_BANNER_CLASSES[0])
        if banner is not None or not create:
            return banner
        banner = self.soup.new_tag('div', attrs={'class': ' '.join(ERROR_BANNER_CLASSES)})
        banner.append(self.soup.new_tag('p'))
        first = self.filter_containers()
        if first:
            first[0].insert_before(banner)
        elif self.soup.body is not None:
            self.soup.body.insert(0, banner)
        else:
            self.soup.insert(0, banner)
        return banner

    def show_error(self, message: str) -> Tag:
        banner = self.error_banner(create=True)
        paragraph = banner.find('p')
        if paragraph is None:
            paragraph = self.soup.new_tag('p')
            banner.append(paragraph)
        paragraph.string = message
        show(banner)
        return banner

    def hide_error(self) -> None:
        banner = self.error_banner()
        if banner is not None:
            hide(banner)

    def error_message(self) -> Optional[str]:
        """Text of the visible error banner, if any"""
        banner = self.error_banner()
        if banner is None or is_hidden(banner):
            return None
        return banner.get_text(strip=True)

    # -- events ----------------------------------------------------------

    def on(self, event: str, selector_or_handler, handler: Optional[Handler] = None) -> None:
        """
        Register a listener.

        on('change', '.filter-select', fn) is delegated: the selector is
        matched against the event target at dispatch time, so markup swapped in
        later is covered. on('handyCustomContentUpdated', fn) listens to a
        document-level custom event.
        """
        if handler is None:
            self._listeners[event].append(selector_or_handler)
        else:
            self._delegated[event].append((selector_or_handler, handler))

    def dispatch(self, event: str, target: Tag) -> List[Any]:
        """
        Deliver a DOM event to the delegated listeners.

        Each listener receives the nearest ancestor-or-self of target matching
        its selector, so a click on the icon inside a button reaches the
        button's listener. Returns the listeners' return values.
        """
        results = []
        for selector, handler in list(self._delegated[event]):
            element = closest(target, selector)
            if element is not None:
                results.append(handler(element))
        return results

    def trigger(self, event: str, detail: Optional[Dict[str, Any]] = None) -> None:
        for handler in list(self._listeners[event]):
            handler(detail or {})

    def html(self) -> str:
        return str(self.soup)
