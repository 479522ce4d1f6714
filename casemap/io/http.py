from __future__ import annotations

import logging
from typing import Any, Dict
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from casemap.errors import FetchFailed
from casemap.io.local import LocalTransport

logger = logging.getLogger(__name__)


def build_session(retries: int = 3, backoff: float = 0.5) -> requests.Session:
    retry = Retry(
        total=retries,
        backoff_factor=backoff,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class HttpTransport:
    """Reads dataset files from a static HTTP host."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 60,
        probe_timeout: float = 5,
        retries: int = 3,
        backoff: float = 0.5,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self.probe_timeout = probe_timeout
        self.session = build_session(retries, backoff)
        # probes are an optimisation only, never retried
        self.probe_session = build_session(retries=0)

    def url_for(self, name: str) -> str:
        return urljoin(self.base_url, name)

    def exists(self, name: str) -> bool:
        url = self.url_for(name)
        try:
            r = self.probe_session.head(url, timeout=self.probe_timeout, allow_redirects=True)
            return r.status_code == 200
        except requests.RequestException as exc:
            logger.debug("Probe for %s failed: %s", url, exc)
            return False

    def get(self, name: str) -> bytes:
        url = self.url_for(name)
        try:
            r = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchFailed(name, None, str(exc)) from exc
        if not r.ok:
            raise FetchFailed(name, r.status_code)
        return r.content


def build_transport(cfg: Dict[str, Any]):
    src = cfg["source"]
    if src.get("base_url"):
        return HttpTransport(
            src["base_url"],
            timeout=src["fetch_timeout"],
            probe_timeout=src["probe_timeout"],
            retries=src["retries"],
            backoff=src["backoff"],
        )
    return LocalTransport(cfg["paths"]["data_dir"])
