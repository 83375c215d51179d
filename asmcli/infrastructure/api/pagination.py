"""Cursor-based pagination over Apple School Manager list endpoints.

Pages are followed through ``links.next`` until the field is absent or
null. Entries are returned raw, in page order.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from asmcli.domain.exceptions import APIError
from asmcli.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

PAGINATION_BATCH_SIZE = 100


class PaginationWalker:
    """Follows next-page links through the retrying executor."""

    def __init__(
        self,
        executor: ApiRetryService,
        before_first_request: Optional[Callable[[], Any]] = None,
    ):
        """
        Args:
            executor: Executor used for every page request.
            before_first_request: Called once before the first page, e.g.
                to authenticate lazily.
        """
        self.executor = executor
        self.before_first_request = before_first_request

    def walk(self, url: str, description: str = "items") -> List[Dict[str, Any]]:
        """Fetches every page starting at url and concatenates their data arrays.

        Raises:
            APIError: On any non-200 page response.
        """
        if self.before_first_request is not None:
            self.before_first_request()

        entries: List[Dict[str, Any]] = []
        next_url: Optional[str] = url
        page = 0
        while next_url:
            page += 1
            response = self.executor.get(next_url)
            if response.status_code != 200:
                raise APIError(f"Failed to fetch {description}: {response.text}")

            body = response.json()
            entries.extend(body.get("data") or [])
            next_url = (body.get("links") or {}).get("next")
            logger.debug(f"Fetched page {page} of {description}; {len(entries)} so far")

        logger.info(f"Fetched {len(entries)} {description} in {page} page(s)")
        return entries
