"""
GrocerHub Backend — Feed Adapter Interface
============================================

What:  Abstract contract for fetching a partner store's product feed, and the
       shared HTTP machinery (timeout, retry, circuit breaker) the partner
       adapters build on.
Who:   Called by the reconciliation engine, one adapter per feed provider.

Contract:
    fetch_products(store) -> list[ExternalProduct]
        - Returns every item of the store's feed, normalized.
        - Raises FeedFetchError when the feed cannot be fetched or parsed.
          A malformed feed is a fetch failure, never a partial result.
        - Raises CircuitBreakerOpenError (a FeedFetchError) while the
          store's breaker is open.

Error Handling Chain (HTTP adapters):
    request fails → tenacity retries transient errors (timeouts, connection
    errors, 429 and 5xx) with exponential backoff + jitter
    → all retries fail → record circuit breaker failure → FeedFetchError
    → threshold reached → later fetches rejected instantly until recovery.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from grocerhub.config import settings
from grocerhub.exceptions import FeedFetchError
from grocerhub.models.store import Store
from grocerhub.schemas.sync import ExternalProduct
from grocerhub.services.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class FeedAdapter(ABC):
    """
    Abstract interface for one partner's product feed.

    Implementations:
        - GenericFeedAdapter:  JSON list at {base}/products, X-API-Key header
        - ShopriteFeedAdapter: bearer key, {"items": [...]} envelope
        - PicknPayFeedAdapter: paginated {"data": [...], "next": url}
        - BoxerFeedAdapter:    HTTP basic auth from api_credentials
        - StaticFeedAdapter:   in-memory records for development and tests
    """

    provider: str = "abstract"

    @abstractmethod
    async def fetch_products(self, store: Store) -> List[ExternalProduct]:
        """
        Fetch and normalize the store's full product feed.

        Raises:
            FeedFetchError: The feed could not be fetched or parsed.
            CircuitBreakerOpenError: The store is being short-circuited.
        """
        ...

    def health_state(self) -> str:
        """Circuit state reported by /health; adapters without one are always closed."""
        return CircuitBreaker.CLOSED


def _is_transient(exc: BaseException) -> bool:
    """Timeouts, connection errors, 429 and 5xx are worth another attempt."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


class HttpFeedAdapter(FeedAdapter):
    """
    Base for adapters that pull a feed over HTTP.

    Subclasses implement `fetch_records` (raw dicts from the partner API) and
    `parse_item` (one raw dict → ExternalProduct). This class owns the client
    lifecycle, retries and the circuit breakers.

    Each store gets its own breaker: stores on the same provider have their
    own base URLs and keys, so one broken store must not block the others.
    Only transient failures (timeouts, connection errors, 429, 5xx) count
    against a breaker. A 4xx or a malformed body means the partner answered.
    """

    provider = "http"

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        min_wait: Optional[float] = None,
        max_wait: Optional[float] = None,
        failure_threshold: Optional[int] = None,
        recovery_timeout: Optional[int] = None,
    ):
        """
        Args:
            transport:         httpx transport override (tests use MockTransport)
            timeout:           Connect/read timeout in seconds
            max_attempts:      Tenacity attempts per fetch
            min_wait:          Initial backoff in seconds
            max_wait:          Backoff ceiling in seconds
            failure_threshold: Transient failures in a row that open a store's circuit
            recovery_timeout:  Seconds an open circuit waits before a trial call
        """
        self._transport = transport
        self.timeout = httpx.Timeout(timeout or settings.feed_timeout_seconds)
        self.max_attempts = max_attempts or settings.retry_max_attempts
        self.min_wait = settings.retry_min_wait if min_wait is None else min_wait
        self.max_wait = settings.retry_max_wait if max_wait is None else max_wait
        self.failure_threshold = failure_threshold or settings.cb_failure_threshold
        self.recovery_timeout = recovery_timeout or settings.cb_recovery_timeout
        self._breakers: Dict[str, CircuitBreaker] = {}

    @staticmethod
    def _breaker_key(store: Store) -> str:
        return str(store.id) if store.id is not None else store.name

    def breaker_for(self, store: Store) -> CircuitBreaker:
        key = self._breaker_key(store)
        breaker = self._breakers.get(key)
        if breaker is None:
            breaker = CircuitBreaker(
                name=f"{self.provider}:{store.name}",
                failure_threshold=self.failure_threshold,
                recovery_timeout=self.recovery_timeout,
            )
            self._breakers[key] = breaker
        return breaker

    def health_state(self) -> str:
        """Worst circuit state across this provider's stores."""
        states = {breaker.state for breaker in self._breakers.values()}
        for state in (CircuitBreaker.OPEN, CircuitBreaker.HALF_OPEN):
            if state in states:
                return state
        return CircuitBreaker.CLOSED

    async def fetch_products(self, store: Store) -> List[ExternalProduct]:
        breaker = self.breaker_for(store)
        # Raises CircuitBreakerOpenError while the store's circuit is open
        breaker.can_execute()

        start_time = time.time()
        logger.info("Fetching %s feed for store '%s'", self.provider, store.name)

        try:
            records = await self._fetch_with_retry(store)
        except httpx.HTTPError as e:
            if _is_transient(e):
                breaker.record_failure()
            else:
                # The partner answered; the request itself was rejected
                breaker.record_success()
            logger.error(
                "Feed fetch for store '%s' failed: %s: %s",
                store.name,
                type(e).__name__,
                str(e),
            )
            raise FeedFetchError(
                message=f"Could not fetch products from {store.name}.",
                context={
                    "store_id": str(store.id),
                    "provider": self.provider,
                    "error_type": type(e).__name__,
                },
            ) from e
        except ValueError as e:
            breaker.record_success()
            raise self._malformed(store, e) from e
        except Exception:
            breaker.record_failure()
            raise

        breaker.record_success()

        try:
            products = [self.parse_item(record) for record in records]
        except (PydanticValidationError, KeyError, TypeError, ValueError, AttributeError) as e:
            raise self._malformed(store, e) from e

        logger.info(
            "Fetched %d items from store '%s' in %.0fms",
            len(products),
            store.name,
            (time.time() - start_time) * 1000,
        )
        return products

    def _malformed(self, store: Store, error: Exception) -> FeedFetchError:
        logger.error("Malformed %s feed from store '%s': %s", self.provider, store.name, str(error))
        return FeedFetchError(
            message=f"Could not fetch products from {store.name}: malformed feed.",
            context={"store_id": str(store.id), "provider": self.provider},
        )

    async def _fetch_with_retry(self, store: Store) -> List[Dict[str, Any]]:
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                multiplier=self.min_wait,
                max=self.max_wait,
                jitter=1 if self.max_wait else 0,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            async for attempt in retrying:
                with attempt:
                    return await self.fetch_records(client, store)
        return []

    @staticmethod
    def _base_url(store: Store) -> str:
        return (store.api_base_url or "").rstrip("/")

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        response.raise_for_status()
        return response.json()

    @abstractmethod
    async def fetch_records(self, client: httpx.AsyncClient, store: Store) -> List[Dict[str, Any]]:
        """Raw item dicts from the partner API. Raise httpx errors on failure."""
        ...

    @abstractmethod
    def parse_item(self, record: Dict[str, Any]) -> ExternalProduct:
        ...
