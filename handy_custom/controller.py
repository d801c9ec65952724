"""
Filter controller: wires the filter selects of a page to the URL, the
admin-ajax content service and the cascade updater.

Event handlers run synchronously on the event loop thread, the way browser
handlers run on the main thread. Each content refresh is scheduled as an
asyncio task carrying an immutable RequestContext; a response is applied only
if its generation is still the newest for its content type.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Set

from bs4 import Tag

from .cascade import apply_cascade
from .config import Settings, get_settings
from .constants import (
    CLEAR_BUTTON_SELECTOR,
    CONTENT_UPDATED_EVENT,
    FILTER_SELECT_SELECTOR,
    INVALID_RESPONSE_MESSAGE,
    TAXONOMIES,
    TRANSPORT_ERROR_MESSAGE,
)
from .exceptions import ApplicationError, ConfigurationError, HandyCustomError, TransportError
from .fetcher import ContentFetcher
from .models import ContextBoundary, RefreshResult, RequestContext
from .page import (
    FilterPage,
    get_select_value,
    select_name,
    set_select_value,
    update_select_state,
)
from .url_state import BrowserHistory, UrlState

logger = logging.getLogger(__name__)


def error_message_for(error: HandyCustomError) -> str:
    """Banner text for a failed refresh"""
    if isinstance(error, TransportError):
        return TRANSPORT_ERROR_MESSAGE
    if isinstance(error, ApplicationError) and error.server_message:
        return error.server_message
    return INVALID_RESPONSE_MESSAGE


class FilterController:
    """Owns every filter group on one page"""

    def __init__(
        self,
        page: FilterPage,
        fetcher: Optional[ContentFetcher] = None,
        history: Optional[BrowserHistory] = None,
        settings: Optional[Settings] = None,
    ):
        self.page = page
        self.settings = settings or get_settings()
        self.history = history or BrowserHistory(page.url)
        self.url_state = UrlState(self.history)
        self.fetcher = fetcher or ContentFetcher(
            self.settings.ajax_url or self.settings.default_ajax_url,
            self.settings.nonce or '',
            settings=self.settings,
        )

        self.context_boundaries: Dict[str, ContextBoundary] = {}
        self._generations: Dict[str, int] = defaultdict(int)
        self._tasks: Set[asyncio.Task] = set()
        self._banner_handle: Optional[asyncio.TimerHandle] = None

        logger.info("Initializing Handy Custom Filters")
        self.page.on('change', FILTER_SELECT_SELECTOR, self._handle_change_event)
        self.page.on('click', CLEAR_BUTTON_SELECTOR, self._handle_clear_event)
        self._init_context_boundaries()
        self.initialize_from_url()
        self.history.on_popstate(self._handle_popstate)
        logger.info("Filter system initialization complete")

    # -- setup -------------------------------------------------------------

    def _init_context_boundaries(self):
        for content_type in self.page.content_types():
            boundary = self.page.context_boundary(content_type)
            self.context_boundaries[content_type] = boundary
            logger.info(f"Context boundaries for {content_type}: {boundary.as_form()}")

            known = TAXONOMIES.get(content_type)
            if known is None:
                logger.warning(f"Unknown content type on page: {content_type}")
                continue
            for select in self.page.selects(content_type):
                if select_name(select) not in known:
                    logger.debug(f"Select '{select_name(select)}' is not a known {content_type} taxonomy")

    def initialize_from_url(self, reset_missing: bool = False) -> None:
        """
        Copy URL parameters into the matching selects.

        With reset_missing, selects without a parameter go back to "All", so
        the page mirrors the URL exactly (used on back/forward navigation).
        """
        params = self.url_state.read_all()
        logger.info(f"Initializing filters from URL: {params}")

        for select in self.page.selects():
            name = select_name(select)
            value = params.get(name)
            if value:
                if not set_select_value(select, value):
                    logger.warning(f"URL value '{value}' is not an option of filter '{name}'")
                update_select_state(select, value)
                logger.debug(f"Filter initialized from URL: {name}={value}")
            elif reset_missing:
                set_select_value(select, '')
                update_select_state(select, '')

        for container in self.page.filter_containers():
            self.page.update_clear_button_visibility(container)

    # -- DOM events -------------------------------------------------------

    def _handle_change_event(self, select: Tag):
        return self._handle_change(select)

    def _handle_clear_event(self, button: Tag):
        return self.on_clear_all(button.get('data-content-type'))

    def _handle_popstate(self, url: str):
        logger.info(f"Browser popstate detected, reinitializing filters from {url}")
        return self.on_popstate()

    # -- operations --------------------------------------------------------

    def on_filter_change(
        self,
        taxonomy_key: str,
        new_value: Optional[str],
        content_type: Optional[str] = None,
    ) -> Optional[asyncio.Task]:
        """
        The user picked `new_value` in the `taxonomy_key` select.

        content_type may be omitted when only one filter group has that
        taxonomy.
        """
        select = self._resolve_select(taxonomy_key, content_type)
        if not set_select_value(select, new_value):
            logger.warning(f"'{new_value}' is not an option of filter '{taxonomy_key}', selecting All")
        return self._handle_change(select)

    def _resolve_select(self, taxonomy_key: str, content_type: Optional[str]) -> Tag:
        if content_type is not None:
            select = self.page.find_select(content_type, taxonomy_key)
            if select is None:
                raise ConfigurationError(f"No {content_type} filter named '{taxonomy_key}'")
            return select

        candidates = [s for s in self.page.selects() if select_name(s) == taxonomy_key]
        if not candidates:
            raise ConfigurationError(f"No filter named '{taxonomy_key}' on the page")
        if len(candidates) > 1:
            raise ConfigurationError(f"Filter '{taxonomy_key}' exists in several groups; pass content_type")
        return candidates[0]

    def _handle_change(self, select: Tag) -> Optional[asyncio.Task]:
        name = select_name(select)
        value = get_select_value(select)
        content_type = self.page.select_content_type(select)
        logger.info(f"Filter changed: {name}={value!r} ({content_type})")

        update_select_state(select, value)
        self.page.update_clear_button_visibility(self.page.filter_container(content_type))
        self.url_state.set_param(name, value)
        return self.refresh(content_type, last_changed=name)

    def on_clear_all(self, content_type: Optional[str]) -> Optional[asyncio.Task]:
        """Reset every filter of one content type"""
        if not content_type or self.page.filter_container(content_type) is None:
            logger.warning(f"Clear requested for unknown filter group: {content_type}")
            return None

        logger.info(f"Clearing all {content_type} filters")
        selects = self.page.selects(content_type)
        for select in selects:
            set_select_value(select, '')
            update_select_state(select, '')
        self.page.update_clear_button_visibility(self.page.filter_container(content_type))

        self.url_state.clear_params(select_name(s) for s in selects)
        return self.refresh(content_type, last_changed=None)

    def on_popstate(self) -> List[asyncio.Task]:
        """Back/forward navigation: mirror the URL, then refresh every group"""
        self.initialize_from_url(reset_missing=True)
        tasks = []
        for content_type in self.page.content_types():
            task = self.refresh(content_type, last_changed=None)
            if task is not None:
                tasks.append(task)
        return tasks

    # -- refresh pipeline ------------------------------------------------

    def current_filter_parameters(self, content_type: str) -> Dict[str, str]:
        """URL values for the selects of one group"""
        params = self.url_state.read_all()
        names = [select_name(s) for s in self.page.selects(content_type)]
        return {name: params[name] for name in names if params.get(name)}

    def build_context(self, content_type: str, last_changed: Optional[str] = None) -> RequestContext:
        self._generations[content_type] += 1
        return RequestContext(
            content_type=content_type,
            generation=self._generations[content_type],
            filters=self.current_filter_parameters(content_type),
            boundary=self.context_boundaries.get(content_type) or self.page.context_boundary(content_type),
            display_mode=self.page.display_mode(content_type),
            last_changed=last_changed,
        )

    def refresh(self, content_type: Optional[str], last_changed: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Schedule a content update for one group.

        Returns None when the page has no result container for the content
        type. Must be called while an event loop is running.
        """
        if not content_type or self.page.archive_container(content_type) is None:
            logger.debug(f"No {content_type} container found, skipping update")
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise ConfigurationError("Filter refreshes need a running event loop") from e

        context = self.build_context(content_type, last_changed)
        self.page.set_loading(content_type, True)
        logger.info(f"Triggering {content_type} content update (generation {context.generation})")

        task = loop.create_task(self._run_refresh(context))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_current(self, context: RequestContext) -> bool:
        return self._generations[context.content_type] == context.generation

    async def _run_refresh(self, context: RequestContext) -> RefreshResult:
        try:
            return await self._fetch_and_apply(context)
        finally:
            # Only the newest request for a group ends its loading state
            if self._is_current(context):
                self.page.set_loading(context.content_type, False)

    async def _fetch_and_apply(self, context: RequestContext) -> RefreshResult:
        result = RefreshResult(content_type=context.content_type, generation=context.generation)
        try:
            response = await self.fetcher.fetch(context)
        except HandyCustomError as e:
            if not self._is_current(context):
                logger.debug(f"Ignoring failure of superseded {context.action} request: {e}")
                result.stale = True
                return result
            self.page.set_loading(context.content_type, False)
            logger.error(f"{context.action} request failed: {e}")
            self.show_error(error_message_for(e))
            result.error = str(e)
            return result

        if not self._is_current(context):
            logger.info(
                f"Dropping superseded {context.action} response "
                f"(generation {context.generation}, latest {self._generations[context.content_type]})"
            )
            result.stale = True
            return result

        self.page.set_loading(context.content_type, False)
        container = self.page.replace_archive(context.content_type, response.data.html)
        result.applied = True
        logger.info(f"{context.content_type} content updated")

        options = response.data.updated_filter_options
        if options:
            result.cascade = apply_cascade(
                self.page,
                self.url_state,
                context.content_type,
                options,
                last_changed=context.last_changed,
            )

        self.page.trigger(CONTENT_UPDATED_EVENT, {
            'content_type': context.content_type,
            'container': container,
            'generation': context.generation,
        })
        return result

    # -- feedback ------------------------------------------------------------

    def show_error(self, message: str) -> None:
        """Show the banner and hide it again after error_banner_seconds"""
        self.page.show_error(message)
        logger.info(f"Error message shown to user: {message}")

        if self._banner_handle is not None:
            self._banner_handle.cancel()
        loop = asyncio.get_running_loop()
        self._banner_handle = loop.call_later(self.settings.error_banner_seconds, self._dismiss_error)

    def _dismiss_error(self):
        self._banner_handle = None
        self.page.hide_error()

    async def wait_idle(self) -> List[RefreshResult]:
        """Wait for every outstanding refresh"""
        results = []
        done: Set[asyncio.Task] = set()
        while True:
            pending = [t for t in self._tasks if t not in done]
            if not pending:
                return results
            results.extend(await asyncio.gather(*pending))
            done.update(pending)

    async def aclose(self):
        if self._banner_handle is not None:
            self._banner_handle.cancel()
            self._banner_handle = None
        await self.fetcher.close()
