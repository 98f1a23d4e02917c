"""
Download of documents supplied by URL instead of as an upload.

Only publicly routable hosts are fetched. Every redirect hop is resolved
and checked again before it is requested.
"""

import asyncio
import ipaddress
import socket
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urlparse

import httpx

from app.core.exceptions import ExtractionError, ValidationError
from app.utils.logger import get_logger

logger = get_logger("document_fetcher")

MAX_REDIRECTS = 5

HostResolver = Callable[[str], Awaitable[List[str]]]


@dataclass(frozen=True)
class FetchedDocument:
    content: bytes
    filename: Optional[str]
    content_type: Optional[str]


async def resolve_host(host: str) -> List[str]:
    """Resolve a hostname to its IP addresses without blocking the loop."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


def is_public_address(address: str) -> bool:
    """True unless the address is loopback, private, link-local or otherwise reserved."""
    ip = ipaddress.ip_address(address.split("%", 1)[0])
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return not (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    )


class DocumentFetcher:
    """Fetches a remote document with a size ceiling and a timeout."""

    def __init__(
        self,
        timeout_seconds: float = 20.0,
        max_bytes: int = 10 * 1024 * 1024,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        resolver: Optional[HostResolver] = None
    ):
        self.timeout_seconds = timeout_seconds
        self.max_bytes = max_bytes
        self._transport = transport
        self._resolver = resolver or resolve_host

    async def ensure_public_host(self, url: str) -> None:
        """
        Reject URLs whose host resolves to a non-public address.

        Raises:
            ValidationError: If the host is missing, unresolvable or internal
        """
        host = urlparse(url).hostname
        if not host:
            raise ValidationError("source_url must include a host")

        try:
            addresses = [str(ipaddress.ip_address(host))]
        except ValueError:
            try:
                addresses = await self._resolver(host)
            except OSError as e:
                logger.warning("Document host unresolvable", host=host, error=str(e))
                raise ValidationError("source_url host could not be resolved") from e

        if not addresses or not all(is_public_address(a) for a in addresses):
            logger.warning("Document host rejected", host=host, addresses=addresses)
            raise ValidationError("source_url must point to a public host")

    async def fetch(self, url: str) -> FetchedDocument:
        """
        Download a document.

        Raises:
            ValidationError: If the host is not public or the document exceeds the size limit
            ExtractionError: If the document cannot be retrieved
        """
        logger.info("Fetching document", url=url)
        chunks = []
        size = 0

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=False,
                transport=self._transport
            ) as client:
                current = httpx.URL(url)
                for _ in range(MAX_REDIRECTS + 1):
                    await self.ensure_public_host(str(current))
                    async with client.stream("GET", current) as response:
                        if response.is_redirect:
                            current = current.join(response.headers["location"])
                            continue
                        response.raise_for_status()
                        content_type = response.headers.get("content-type")
                        async for chunk in response.aiter_bytes():
                            size += len(chunk)
                            if size > self.max_bytes:
                                raise ValidationError("Document at source_url exceeds maximum size")
                            chunks.append(chunk)
                        break
                else:
                    raise ExtractionError("Document download failed: too many redirects")
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Document fetch rejected",
                url=url,
                status_code=e.response.status_code
            )
            raise ExtractionError(f"Document download failed with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("Document fetch failed", url=url, error=str(e))
            raise ExtractionError(f"Document download failed: {e}") from e

        name = PurePosixPath(current.path).name or None
        return FetchedDocument(
            content=b"".join(chunks),
            filename=name,
            content_type=content_type
        )
