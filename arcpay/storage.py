"""
Key-value storage behind a get / put / list interface.

MemoryKVStore is used for local runs and tests. CloudflareKVStore talks to
Workers KV over the Cloudflare REST API, so the Python service can share
namespaces with the JavaScript Workers deployment.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

import requests

from arcpay.config import ArcPayConfig

logger = logging.getLogger(__name__)

CLOUDFLARE_API_URL = "https://api.cloudflare.com/client/v4"
# Workers KV rejects TTLs below 60 seconds
MIN_KV_TTL_SECONDS = 60


class KVStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None: ...

    def list(self, prefix: Optional[str] = None) -> List[str]: ...

    def delete(self, key: str) -> None: ...


class MemoryKVStore:
    """Thread-safe in-memory store with per-key TTL."""

    def __init__(self, clock=time.time):
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expiry = entry
            if expiry is not None and self._clock() >= expiry:
                del self._data[key]
                return None
            return value

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expiry = self._clock() + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._data[key] = (value, expiry)

    def list(self, prefix: Optional[str] = None) -> List[str]:
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, exp) in self._data.items() if exp is not None and now >= exp]
            for k in expired:
                del self._data[k]
            keys = [k for k in self._data if not prefix or k.startswith(prefix)]
        return sorted(keys)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class CloudflareKVStore:
    """
    Workers KV namespace accessed through the Cloudflare API v4.

    Errors propagate as requests.HTTPError; the store never swallows a write.
    """

    def __init__(
        self,
        account_id: str,
        namespace_id: str,
        api_token: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._base = f"{CLOUDFLARE_API_URL}/accounts/{account_id}/storage/kv/namespaces/{namespace_id}"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {api_token}"})

    def _value_url(self, key: str) -> str:
        return f"{self._base}/values/{requests.utils.quote(key, safe='')}"

    def get(self, key: str) -> Optional[str]:
        r = self._session.get(self._value_url(key), timeout=self._timeout)
        if r.status_code == 404:
            return None
        r.raise_for_status()
        return r.text

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        params = {}
        if ttl_seconds:
            params["expiration_ttl"] = max(int(ttl_seconds), MIN_KV_TTL_SECONDS)
        r = self._session.put(
            self._value_url(key),
            data=value.encode("utf-8"),
            params=params,
            headers={"Content-Type": "text/plain"},
            timeout=self._timeout,
        )
        r.raise_for_status()

    def list(self, prefix: Optional[str] = None) -> List[str]:
        keys: List[str] = []
        cursor: Optional[str] = None
        while True:
            params = {"limit": 1000}
            if prefix:
                params["prefix"] = prefix
            if cursor:
                params["cursor"] = cursor
            r = self._session.get(f"{self._base}/keys", params=params, timeout=self._timeout)
            r.raise_for_status()
            data = r.json()
            keys.extend(item["name"] for item in data.get("result") or [])
            cursor = ((data.get("result_info") or {}).get("cursor") or "").strip()
            if not cursor:
                break
        return keys

    def delete(self, key: str) -> None:
        r = self._session.delete(self._value_url(key), timeout=self._timeout)
        if r.status_code != 404:
            r.raise_for_status()


@dataclass
class Stores:
    """The three KV namespaces the backend uses."""

    preferences: KVStore
    history: KVStore
    subscriptions: KVStore


def memory_stores() -> Stores:
    return Stores(preferences=MemoryKVStore(), history=MemoryKVStore(), subscriptions=MemoryKVStore())


def build_stores(config: ArcPayConfig) -> Stores:
    """Workers KV when all namespaces are configured, else in-memory."""
    if not config.kv_configured:
        logger.info("Workers KV not configured; using in-memory stores (data is lost on restart)")
        return memory_stores()

    def ns(namespace_id: str) -> CloudflareKVStore:
        return CloudflareKVStore(
            account_id=config.cloudflare_account_id,
            namespace_id=namespace_id,
            api_token=config.cloudflare_api_token,
            timeout=config.http_timeout,
        )

    return Stores(
        preferences=ns(config.kv_preferences_namespace),
        history=ns(config.kv_history_namespace),
        subscriptions=ns(config.kv_subscriptions_namespace),
    )
