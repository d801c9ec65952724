"""
URL state synchronization for filter values.

The module-level functions are pure: they take a URL and return a new one.
UrlState applies them to a BrowserHistory, which stands in for
window.location / window.history (push-state entries plus back/forward
navigation that fires popstate listeners).
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

PopstateListener = Callable[[str], None]


def _pairs(url: str) -> List[tuple]:
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def _with_pairs(url: str, pairs: List[tuple]) -> str:
    parts = urlsplit(url)
    return urlunsplit(parts._replace(query=urlencode(pairs)))


def set_param(url: str, name: str, value: Optional[str]) -> str:
    """
    Set `name` to `value`, or delete it when the value is empty.

    An existing key keeps its position and loses any duplicates; a new key is
    appended.
    """
    pairs = _pairs(url)
    if value is None or value.strip() == '':
        return _with_pairs(url, [(k, v) for k, v in pairs if k != name])

    result = []
    replaced = False
    for k, v in pairs:
        if k != name:
            result.append((k, v))
        elif not replaced:
            result.append((k, value))
            replaced = True
    if not replaced:
        result.append((name, value))
    return _with_pairs(url, result)


def clear_params(url: str, names: Iterable[str]) -> str:
    """Delete every listed parameter"""
    names = set(names)
    return _with_pairs(url, [(k, v) for k, v in _pairs(url) if k not in names])


def read_all(url: str) -> Dict[str, str]:
    """Query string as a dict; the first value wins for repeated keys"""
    params: Dict[str, str] = {}
    for k, v in _pairs(url):
        params.setdefault(k, v)
    return params


class BrowserHistory:
    """Session history: a list of URLs and a cursor"""

    def __init__(self, url: str):
        self._entries: List[str] = [url]
        self._index = 0
        self._listeners: List[PopstateListener] = []

    @property
    def url(self) -> str:
        return self._entries[self._index]

    @property
    def length(self) -> int:
        return len(self._entries)

    def push_state(self, url: str) -> None:
        """Add an entry and drop any forward entries. Does not fire popstate."""
        del self._entries[self._index + 1:]
        self._entries.append(url)
        self._index += 1

    def on_popstate(self, listener: PopstateListener) -> None:
        self._listeners.append(listener)

    def go(self, delta: int) -> bool:
        """Move through history; fires popstate when the cursor moves"""
        target = self._index + delta
        if delta == 0 or target < 0 or target >= len(self._entries):
            return False
        self._index = target
        logger.debug(f"popstate -> {self.url}")
        for listener in list(self._listeners):
            listener(self.url)
        return True

    def back(self) -> bool:
        return self.go(-1)

    def forward(self) -> bool:
        return self.go(1)


class UrlState:
    """Filter-facing view of the address bar"""

    def __init__(self, history: BrowserHistory):
        self.history = history

    @property
    def url(self) -> str:
        return self.history.url

    def set_param(self, name: str, value: Optional[str]) -> str:
        new_url = set_param(self.url, name, value)
        self.history.push_state(new_url)
        if value is None or value.strip() == '':
            logger.debug(f"URL parameter removed: {name}")
        else:
            logger.debug(f"URL parameter set: {name}={value}")
        logger.info(f"URL updated: {new_url}")
        return new_url

    def clear_params(self, names: Iterable[str]) -> str:
        names = list(names)
        new_url = clear_params(self.url, names)
        self.history.push_state(new_url)
        logger.info(f"URL parameters cleared ({', '.join(names)}): {new_url}")
        return new_url

    def read_all(self) -> Dict[str, str]:
        return read_all(self.url)

    def get(self, name: str) -> Optional[str]:
        return self.read_all().get(name)
