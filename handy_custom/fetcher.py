"""
Content fetcher for the filter_products / filter_recipes admin-ajax actions
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp
from pydantic import ValidationError

from .config import Settings, get_settings
from .exceptions import ApplicationError, MalformedResponseError, TransportError
from .models import FilterResponse, RequestContext

logger = logging.getLogger(__name__)

# (url, form data, timeout seconds) -> decoded JSON body
Transport = Callable[[str, Dict[str, str], float], Awaitable[Any]]


def _preview(raw: bytes) -> str:
    return raw[:500].decode('utf-8', errors='replace')


class AiohttpTransport:
    """POSTs URL-encoded forms over a shared aiohttp session"""

    def __init__(self, user_agent: Optional[str] = None):
        self.user_agent = user_agent
        self.session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            headers = {
                'Accept': 'application/json, text/javascript, */*; q=0.01',
                'X-Requested-With': 'XMLHttpRequest',
            }
            if self.user_agent:
                headers['User-Agent'] = self.user_agent
            self.session = aiohttp.ClientSession(headers=headers)
        return self.session

    async def __call__(self, url: str, data: Dict[str, str], timeout: float) -> Any:
        session = await self._ensure_session()
        try:
            async with session.post(url, data=data, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
                raw = await resp.read()
                if resp.status >= 400:
                    raise TransportError(
                        f"HTTP {resp.status} from {url}",
                        status_code=resp.status,
                        response_body=_preview(raw),
                    )
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request to {url} timed out after {timeout:g}s", timed_out=True) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e

        # UnicodeDecodeError is a ValueError too
        try:
            return json.loads(raw.decode('utf-8'))
        except ValueError as e:
            raise TransportError(
                f"Non-JSON response from {url}",
                status_code=resp.status,
                response_body=_preview(raw),
            ) from e

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()


def server_message(payload: Any) -> Optional[str]:
    """wp_send_json_error() sends either a bare string or {'message': ...}"""
    data = payload.get('data') if isinstance(payload, dict) else None
    if isinstance(data, str) and data.strip():
        return data
    if isinstance(data, dict):
        message = data.get('message')
        if isinstance(message, str) and message.strip():
            return message
    return None


def _normalize_options(options: Any) -> Any:
    """
    PHP encodes an empty array as [] and a re-keyed term list as an object;
    bring both back to the mapping/list shape the model expects.
    """
    if isinstance(options, list) and not options:
        return None
    if isinstance(options, dict):
        return {
            key: list(terms.values()) if isinstance(terms, dict) else terms
            for key, terms in options.items()
        }
    return options


def parse_filter_response(action: str, payload: Any) -> FilterResponse:
    """
    Validate a filter response envelope.

    Raises:
        ApplicationError: success is false
        MalformedResponseError: success without usable data.html
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(action, f"expected a JSON object, got {type(payload).__name__}")

    if payload.get('success') is not True:
        raise ApplicationError(action, server_message(payload))

    data = payload.get('data')
    if not isinstance(data, dict):
        raise MalformedResponseError(action, "missing data")
    if not isinstance(data.get('html'), str) or not data['html']:
        raise MalformedResponseError(action, "missing data.html")

    data = dict(data)
    data['updated_filter_options'] = _normalize_options(data.get('updated_filter_options'))
    try:
        return FilterResponse.model_validate({'success': True, 'data': data})
    except ValidationError as e:
        raise MalformedResponseError(action, f"invalid updated_filter_options: {e.error_count()} errors") from e


class ContentFetcher:
    """Issues one filter request per RequestContext. Never retries."""

    def __init__(
        self,
        ajax_url: str,
        nonce: str = '',
        transport: Optional[Transport] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.ajax_url = ajax_url
        self.nonce = nonce
        self.timeout = self.settings.request_timeout
        self.transport = transport or AiohttpTransport(self.settings.user_agent)

    async def fetch(self, context: RequestContext) -> FilterResponse:
        form = context.form_data(self.nonce)
        logger.info(
            f"Requesting {context.action} (generation {context.generation}) with filters "
            f"{context.filters or '{}'} and context {context.boundary.as_form()}"
        )
        logger.debug(f"Form body: {form}")

        payload = await self.transport(self.ajax_url, form, self.timeout)
        response = parse_filter_response(context.action, payload)

        options = response.data.updated_filter_options
        logger.info(
            f"{context.action} response received: {len(response.data.html)} bytes of html, "
            f"{len(options) if options else 0} cascading taxonomies"
        )
        return response

    async def close(self):
        close = getattr(self.transport, 'close', None)
        if close is not None:
            await close()
