"""Downloader for the SPDX license-list corpus.

Fetches canonical license texts from the spdx/license-list-data repository
so they can be stored in the corpus cache. This is the only part of
license_bom that touches the network.
"""

import asyncio
import logging
from typing import Iterable, Optional

import aiohttp

from license_bom.errors import CorpusUnavailable

logger = logging.getLogger(__name__)

LICENSE_LIST_URL = "https://raw.githubusercontent.com/spdx/license-list-data/{ref}/json"


class SPDXCorpusFetcher:
    """Fetches canonical license texts from the SPDX license list.

    Manages an aiohttp session for connection reuse. Use as an async
    context manager or call close() when done.

    Attributes:
        ref: Git ref of the license-list-data repository ("main" or a
            release tag such as "v3.24").
        concurrency: Maximum number of concurrent downloads.
        max_retries: Retries for rate-limited responses.
    """

    def __init__(
        self, ref: str = "main", concurrency: int = 8, max_retries: int = 3
    ) -> None:
        self.ref = ref
        self.concurrency = concurrency
        self.max_retries = max_retries
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def base_url(self) -> str:
        return LICENSE_LIST_URL.format(ref=self.ref)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=60)
            )
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "SPDXCorpusFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_json(self, url: str, retry_count: int = 0) -> Optional[dict]:
        """GET a JSON document.

        Args:
            url: Document URL.
            retry_count: Current retry attempt.

        Returns:
            Decoded JSON object, or None if the request failed.
        """
        session = await self._get_session()

        try:
            async with session.get(url) as response:
                # Handle rate limiting
                if response.status in (403, 429):
                    if retry_count >= self.max_retries:
                        logger.warning("Giving up on %s after %d retries", url, retry_count)
                        return None

                    retry_after = response.headers.get("Retry-After")
                    if retry_after and retry_after.isdigit():
                        wait_time = int(retry_after)
                    else:
                        # Exponential backoff: 1s, 2s, 4s
                        wait_time = 2**retry_count

                    await asyncio.sleep(wait_time)
                    return await self._get_json(url, retry_count + 1)

                if response.status != 200:
                    logger.debug("GET %s returned %d", url, response.status)
                    return None

                # raw.githubusercontent.com serves JSON as text/plain
                data = await response.json(content_type=None)
                return data if isinstance(data, dict) else None

        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("GET %s failed: %s", url, e)
            return None

    async def fetch_index(self) -> tuple[str, list[str]]:
        """Fetch the license list index.

        Returns:
            Tuple of (license list version, non-deprecated license ids).

        Raises:
            CorpusUnavailable: If the index cannot be fetched or is invalid.
        """
        url = f"{self.base_url}/licenses.json"
        data = await self._get_json(url)
        if data is None or not isinstance(data.get("licenses"), list):
            raise CorpusUnavailable("unable to fetch the SPDX license list", url)

        ids = [
            entry["licenseId"]
            for entry in data["licenses"]
            if entry.get("licenseId") and not entry.get("isDeprecatedLicenseId", False)
        ]
        return str(data.get("licenseListVersion", self.ref)), sorted(ids)

    async def fetch_text(self, spdx_id: str) -> Optional[str]:
        """Fetch the canonical text of one license, or None on failure."""
        data = await self._get_json(f"{self.base_url}/details/{spdx_id}.json")
        if data is None:
            return None
        text = data.get("licenseText")
        return text if isinstance(text, str) and text.strip() else None

    async def fetch_all(
        self, ids: Optional[Iterable[str]] = None
    ) -> tuple[str, dict[str, str]]:
        """Fetch the canonical texts of many licenses concurrently.

        Individual failures are logged and skipped.

        Args:
            ids: Licenses to fetch. Defaults to every non-deprecated license
                of the index.

        Returns:
            Tuple of (license list version, mapping of id to text).

        Raises:
            CorpusUnavailable: If the index or every text failed to download.
        """
        version, index_ids = await self.fetch_index()
        wanted = sorted(ids) if ids is not None else index_ids
        logger.info("Fetching %d license texts from SPDX list %s", len(wanted), version)

        semaphore = asyncio.Semaphore(self.concurrency)

        async def fetch_one(spdx_id: str) -> Optional[str]:
            async with semaphore:
                return await self.fetch_text(spdx_id)

        results = await asyncio.gather(*(fetch_one(i) for i in wanted))

        texts: dict[str, str] = {}
        for spdx_id, text in zip(wanted, results):
            if text is None:
                logger.warning("Unable to fetch license text of %s", spdx_id)
                continue
            texts[spdx_id] = text

        if not texts:
            raise CorpusUnavailable("no license texts could be fetched", self.base_url)

        logger.info("Fetched %d/%d license texts", len(texts), len(wanted))
        return version, texts
