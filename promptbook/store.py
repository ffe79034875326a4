"""
CatalogStore: owns the currently published Catalog.

Readers call `store.catalog` and always get a complete Catalog: a new one is
published with a single attribute assignment, only after it built cleanly.

Rebuilds never interleave. A rebuild requested while another is running
waits for it; if a build that started after the request has already
published by then, the request is satisfied and nothing is rebuilt again.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .errors import CatalogUnavailableError, DuplicateSlugError, PromptBookError, ValidationError
from .models import Catalog

logger = logging.getLogger(__name__)


class CatalogStore:
    """Atomically swapped reference to the live Catalog."""

    def __init__(self, build: Callable[[], Catalog]):
        """Initialize store.

        Args:
            build: Zero-argument callable producing a fresh Catalog
        """
        self._build = build
        self._catalog: Optional[Catalog] = None
        self._build_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._requested = 0
        self._completed = 0
        self.last_error: Optional[Exception] = None

    @property
    def catalog(self) -> Catalog:
        catalog = self._catalog
        if catalog is None:
            raise CatalogUnavailableError("Catalog has not been built yet")
        return catalog

    @property
    def is_built(self) -> bool:
        return self._catalog is not None

    def load(self) -> Catalog:
        """First build. Fails closed: any build error propagates."""
        self.rebuild(raise_errors=True)
        return self.catalog

    def rebuild(self, raise_errors: bool = False) -> bool:
        """Build a new Catalog and publish it.

        Args:
            raise_errors: Propagate build errors instead of logging them

        Returns:
            True if a catalog covering this request is published, False if
            the build failed and the previous catalog is still served

        Raises:
            PromptBookError: On build failure when raise_errors is set, or
                when no catalog has ever been published
        """
        with self._state_lock:
            self._requested += 1
            ticket = self._requested

        with self._build_lock:
            if self._completed >= ticket:
                logger.debug(f"Rebuild request {ticket} coalesced into an earlier build")
                return True

            with self._state_lock:
                target = self._requested

            try:
                catalog = self._build()
            except PromptBookError as exc:
                self.last_error = exc
                self._log_failure(exc)
                if raise_errors or self._catalog is None:
                    raise
                return False

            self._catalog = catalog
            self._completed = target
            self.last_error = None
            logger.info(f"Published catalog with {len(catalog)} nodes")
            return True

    def _log_failure(self, exc: PromptBookError) -> None:
        if isinstance(exc, DuplicateSlugError):
            detail = f"{exc.first} and {exc.second}"
        elif isinstance(exc, ValidationError) and exc.path is not None:
            detail = str(exc.path)
        else:
            detail = str(exc)

        if self._catalog is None:
            logger.error(f"Catalog build failed ({detail}): {exc}")
        else:
            logger.error(
                f"Catalog rebuild failed ({detail}): {exc}; "
                f"keeping catalog built at {self._catalog.built_at.isoformat()}"
            )
