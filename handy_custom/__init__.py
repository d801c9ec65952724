"""
Handy Custom Filters
Headless client for the Handy Custom plugin's cascading archive filters
"""

from .config import Settings, get_settings
from .exceptions import (
    HandyCustomError,
    ConfigurationError,
    TransportError,
    ApplicationError,
    MalformedResponseError,
    ToggleError,
)
from .models import (
    FilterOption,
    ContextBoundary,
    RequestContext,
    FilterResponse,
    CascadeResult,
    RefreshResult,
)
from .url_state import BrowserHistory, UrlState, set_param, clear_params, read_all
from .page import FilterPage
from .fetcher import ContentFetcher, AiohttpTransport
from .cascade import apply_cascade
from .controller import FilterController
from .featured_toggle import FeaturedToggle
from .page_loader import load_page, page_from_html

__version__ = "1.0.0"

__all__ = [
    # Config
    'Settings',
    'get_settings',
    # Exceptions
    'HandyCustomError',
    'ConfigurationError',
    'TransportError',
    'ApplicationError',
    'MalformedResponseError',
    'ToggleError',
    # Models
    'FilterOption',
    'ContextBoundary',
    'RequestContext',
    'FilterResponse',
    'CascadeResult',
    'RefreshResult',
    # URL state
    'BrowserHistory',
    'UrlState',
    'set_param',
    'clear_params',
    'read_all',
    # Filters
    'FilterPage',
    'ContentFetcher',
    'AiohttpTransport',
    'apply_cascade',
    'FilterController',
    'FeaturedToggle',
    'load_page',
    'page_from_html',
]
