"""
Image loading for document rendering.

Candidate photos, signatures and thumbprints are stored as ``data:`` URIs,
``http(s)`` URLs or paths relative to the configured assets directory;
company logos are files in that directory. Anything that cannot be loaded is
reported as missing and the renderer draws an empty box instead.

Image sources are candidate input. A remote host must resolve only to public
addresses and, when an allow list is configured, be on it. Redirects are not
followed and bodies are capped in size.
"""

import base64
import binascii
import io
import ipaddress
import socket
import structlog
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import httpx
from reportlab.lib.utils import ImageReader

logger = structlog.get_logger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024

Resolver = Callable[[str], List[str]]


def resolve_host(host: str) -> List[str]:
    """All addresses a host name resolves to."""
    infos = socket.getaddrinfo(host, None, proto=socket.IPPROTO_TCP)
    return [info[4][0] for info in infos]


def is_public_address(address: str) -> bool:
    """False for loopback, private, link-local, reserved and similar ranges."""
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
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


class ImageLoader:
    """
    Loads and validates images for one rendering pass.

    Results are cached per source, so an image used in several sections is
    fetched once. Use as a context manager to release the HTTP client.
    """

    def __init__(self, timeout: float = 10.0, assets_dir: Optional[str] = None,
                 client: Optional[httpx.Client] = None, max_bytes: int = DEFAULT_MAX_BYTES,
                 allowed_hosts: Iterable[str] = (), resolver: Resolver = resolve_host):
        """
        Args:
            timeout: Timeout for remote fetches (seconds)
            assets_dir: Directory that holds logo files
            client: HTTP client to use (one is created when omitted)
            max_bytes: Largest accepted image, remote or inline
            allowed_hosts: Hosts remote images may come from (any public host when empty)
            resolver: Host name to addresses lookup
        """
        self.assets_dir = Path(assets_dir) if assets_dir else None
        self.max_bytes = max_bytes
        self.allowed_hosts = {host.lower() for host in allowed_hosts}
        self._resolver = resolver
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=False)
        self._cache: Dict[str, Optional[bytes]] = {}

    def __enter__(self) -> "ImageLoader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def load(self, source: Optional[str]) -> Optional[bytes]:
        """
        Image bytes for a data URI or URL, or None when unavailable.

        Args:
            source: ``data:`` URI or ``http(s)`` URL

        Returns:
            Raw image bytes that reportlab can read, or None
        """
        if not source:
            return None
        if source in self._cache:
            return self._cache[source]

        data = self._fetch(source)
        if data is not None and not self._is_readable(data):
            logger.warning("document_image_unreadable", source=_describe(source))
            data = None

        self._cache[source] = data
        return data

    def load_asset(self, filename: str) -> Optional[bytes]:
        """Bytes of a file in the assets directory, or None."""
        if self.assets_dir is None:
            return None
        path = self.assets_dir / filename
        key = f"asset:{path}"
        if key in self._cache:
            return self._cache[key]

        data: Optional[bytes] = None
        if path.is_file():
            data = path.read_bytes()
            if not self._is_readable(data):
                logger.warning("document_asset_unreadable", path=str(path))
                data = None
        else:
            logger.debug("document_asset_missing", path=str(path))

        self._cache[key] = data
        return data

    def _fetch(self, source: str) -> Optional[bytes]:
        if source.startswith("data:"):
            return _decode_data_uri(source, self.max_bytes)

        if source.startswith(("http://", "https://")):
            if not self._host_permitted(source):
                return None
            try:
                return self._download(source)
            except httpx.HTTPError as e:
                logger.warning("document_image_fetch_failed", source=_describe(source), error=str(e))
                return None

        if self.assets_dir is not None:
            path = (self.assets_dir / source.lstrip("/")).resolve()
            if path.is_file() and self.assets_dir.resolve() in path.parents:
                return path.read_bytes()

        logger.warning("document_image_unsupported_source", source=_describe(source))
        return None

    def _host_permitted(self, source: str) -> bool:
        """The URL's host is allowed and resolves only to public addresses."""
        try:
            host = (httpx.URL(source).host or "").lower()
        except httpx.InvalidURL:
            host = ""
        if not host:
            logger.warning("document_image_bad_url", source=_describe(source))
            return False

        if self.allowed_hosts and host not in self.allowed_hosts:
            logger.warning("document_image_host_not_allowed", host=host)
            return False

        try:
            addresses = self._resolver(host)
        except (OSError, UnicodeError) as e:
            logger.warning("document_image_host_unresolved", host=host, error=str(e))
            return False

        if not addresses or not all(is_public_address(address) for address in addresses):
            logger.warning("document_image_host_blocked", host=host)
            return False
        return True

    def _download(self, source: str) -> Optional[bytes]:
        """Body of a 2xx response, or None when it redirects or is too large."""
        with self._client.stream("GET", source) as response:
            if response.is_redirect:
                logger.warning("document_image_redirect_refused", source=_describe(source))
                return None
            response.raise_for_status()

            declared = response.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > self.max_bytes:
                logger.warning("document_image_too_large", source=_describe(source), size=int(declared))
                return None

            chunks = []
            received = 0
            for chunk in response.iter_bytes():
                received += len(chunk)
                if received > self.max_bytes:
                    logger.warning("document_image_too_large", source=_describe(source))
                    return None
                chunks.append(chunk)
            return b"".join(chunks)

    @staticmethod
    def _is_readable(data: bytes) -> bool:
        try:
            ImageReader(io.BytesIO(data)).getSize()
            return True
        except Exception:
            return False


def _decode_data_uri(uri: str, max_bytes: int = DEFAULT_MAX_BYTES) -> Optional[bytes]:
    """Decode a base64 ``data:`` URI no larger than ``max_bytes`` once decoded."""
    header, _, payload = uri.partition(",")
    if not payload or ";base64" not in header:
        logger.warning("document_image_bad_data_uri")
        return None
    if len(payload) * 3 // 4 > max_bytes:
        logger.warning("document_image_too_large", size=len(payload) * 3 // 4)
        return None
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        logger.warning("document_image_bad_data_uri")
        return None


def _describe(source: str) -> str:
    """Short form of a source for logs (data URIs can be megabytes)."""
    if source.startswith("data:"):
        return source[:30] + "..."
    return source
