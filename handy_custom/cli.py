#!/usr/bin/env python3
"""
Command line entry point.

Examples:
  handy-filters filter https://example.com/recipes/ --type recipes --set category=soups
  handy-filters filter page.html --page-url https://example.com/products/ --clear --type products
  handy-filters toggle --ajax-url https://example.com/wp-admin/admin-ajax.php --post-id 12 --status 1 --nonce abc
  handy-filters toggle --page recipes-admin.html --post-id 12
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .config import Settings, get_settings
from .constants import CONTENT_TYPES
from .controller import FilterController
from .exceptions import ConfigurationError, HandyCustomError
from .featured_toggle import FeaturedToggle, toggle_buttons
from .fetcher import ContentFetcher
from .log import configure_logging
from .page import get_select_value, select_name, select_options, option_value
from .page_loader import LoadedPage, load_page, page_from_html, resolve_toggle_ajax_url
from .url_state import BrowserHistory
from .utils import filter_label, parse_assignment

logger = logging.getLogger(__name__)


def _load(source: str, page_url: Optional[str], settings: Settings) -> LoadedPage:
    if source.startswith(('http://', 'https://')):
        return load_page(source, settings=settings)
    html = Path(source).read_text(encoding='utf-8')
    return page_from_html(html, url=page_url or settings.site_url, settings=settings)


def print_state(controller: FilterController) -> None:
    print(f"URL: {controller.history.url}")
    for content_type in controller.page.content_types():
        print(f"\n[{content_type}]")
        for select in controller.page.selects(content_type):
            name = select_name(select)
            values = [option_value(o) for o in select_options(select)[1:]]
            current = get_select_value(select) or '(all)'
            print(f"  {filter_label(name)}: {current}  options: {', '.join(values) or '-'}")
    message = controller.page.error_message()
    if message:
        print(f"\nError: {message}")


async def run_filter(args, settings: Settings) -> int:
    loaded = _load(args.source, args.page_url, settings)
    if loaded.config.debug:
        logging.getLogger('handy_custom').setLevel(logging.DEBUG)

    fetcher = ContentFetcher(loaded.config.ajax_url, loaded.config.nonce, settings=settings)
    controller = FilterController(
        loaded.page,
        fetcher=fetcher,
        history=BrowserHistory(loaded.page.url or settings.site_url),
        settings=settings,
    )

    results = []
    try:
        if args.clear:
            controller.on_clear_all(args.type)
            results.extend(await controller.wait_idle())

        for assignment in args.set or []:
            key, value = parse_assignment(assignment)
            controller.on_filter_change(key, value, args.type)
            results.extend(await controller.wait_idle())

        for _ in range(args.back):
            if not controller.history.back():
                logger.warning("No earlier history entry to go back to")
                break
            results.extend(await controller.wait_idle())
    finally:
        await controller.aclose()

    if args.html:
        for content_type in controller.page.content_types():
            container = controller.page.archive_container(content_type)
            if container is not None:
                print(BeautifulSoup(str(container), 'html.parser').prettify())
    else:
        print_state(controller)

    return 1 if any(r.error for r in results) else 0


def _toggle_target(args, settings: Settings) -> Tuple[Tag, str]:
    """The button to click and the admin-ajax URL to post it to"""
    if args.page:
        loaded = _load(args.page, None, settings)
        for button in toggle_buttons(loaded.page):
            if button.get('data-postid') == str(args.post_id):
                return button, resolve_toggle_ajax_url(loaded.objects, settings)
        raise ConfigurationError(f"No featured toggle for post {args.post_id} on {args.page}")

    markup = (
        f'<a href="#" class="toggle-featured-status" data-postid="{args.post_id}" '
        f'data-status="{args.status}" data-nonce="{args.nonce}" title="">'
        f'<span class="dashicons dashicons-star-empty"></span></a>'
    )
    button = BeautifulSoup(markup, 'html.parser').a
    return button, args.ajax_url or settings.default_ajax_url


def run_toggle(args, settings: Settings) -> int:
    button, ajax_url = _toggle_target(args, settings)
    messages: List[str] = []
    toggle = FeaturedToggle(ajax_url, alert=messages.append, settings=settings)

    if toggle.click(button):
        print(f"Post {args.post_id}: {button['title']} (next status {button['data-status']})")
        return 0
    for message in messages:
        print(message, file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drive Handy Custom archive filters from the command line")
    parser.add_argument('--debug', action='store_true', help='Verbose filter logging')
    parser.add_argument('--log-format', choices=['text', 'json'], default=None, help='Log line format')
    sub = parser.add_subparsers(dest='command', required=True)

    f = sub.add_parser('filter', help='Apply filter changes to an archive page')
    f.add_argument('source', help='Page URL, or path to a saved HTML page')
    f.add_argument('--type', choices=CONTENT_TYPES, default=None,
                   help='Filter group to act on (needed when both are on the page)')
    f.add_argument('--set', action='append', metavar='KEY=VALUE',
                   help='Change one filter; repeat to change several in order')
    f.add_argument('--clear', action='store_true', help='Clear all filters of --type first')
    f.add_argument('--back', type=int, default=0, help='Go back N history entries afterwards')
    f.add_argument('--page-url', default=None, help='Address to use for a saved HTML page')
    f.add_argument('--ajax-url', default=None, help='Override the admin-ajax.php URL')
    f.add_argument('--nonce', default=None, help='Override the filter nonce')
    f.add_argument('--html', action='store_true', help='Print archive markup instead of filter state')

    t = sub.add_parser('toggle', help='Toggle the featured status of a recipe')
    t.add_argument('--ajax-url', default=None, help='admin-ajax.php URL')
    t.add_argument('--page', default=None,
                   help='Recipes admin list (URL or saved HTML); the button, nonce and ajax URL come from it')
    t.add_argument('--post-id', type=int, required=True)
    t.add_argument('--status', choices=['0', '1'], default=None, help='Status to set (without --page)')
    t.add_argument('--nonce', default=None, help='Toggle nonce (without --page)')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.debug:
        overrides['debug'] = True
    if args.log_format:
        overrides['log_format'] = args.log_format
    if getattr(args, 'ajax_url', None):
        overrides['ajax_url'] = args.ajax_url
    if getattr(args, 'nonce', None) and args.command == 'filter':
        overrides['nonce'] = args.nonce
    settings = get_settings().model_copy(update=overrides)
    configure_logging(settings)

    if args.command == 'filter' and args.clear and not args.type:
        print("--clear needs --type", file=sys.stderr)
        return 2
    if args.command == 'toggle' and not args.page and (args.status is None or args.nonce is None):
        print("toggle needs --status and --nonce, or --page", file=sys.stderr)
        return 2

    try:
        if args.command == 'filter':
            return asyncio.run(run_filter(args, settings))
        return run_toggle(args, settings)
    except (HandyCustomError, ValueError, OSError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
