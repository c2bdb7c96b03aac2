"""Secure download of release files.

HTTPS requests verify against certifi's CA bundle, which also works for
interpreters that cannot reach the system certificate store (e.g. some
macOS installs). urllib's automatic redirect handling is disabled: the
fetcher follows redirects itself, up to a fixed number of hops, so a
misbehaving server cannot keep it looping.
"""

from __future__ import annotations

import ssl
from http.client import HTTPException
from pathlib import Path
from typing import Any, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urljoin, urlparse
from urllib.request import (
    HTTPRedirectHandler,
    HTTPSHandler,
    OpenerDirector,
    Request,
    build_opener,
)

import certifi

from goose_bin.bootstrap.progress import (
    NullProgressHandler,
    ProgressHandler,
    ProgressTracker,
)
from goose_bin.config.models import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    GooseBinConfig,
)
from goose_bin.core.errors import GooseBinError
from goose_bin.core.logging import get_logger

LOGGER = get_logger(__name__)

REDIRECT_CODES = frozenset({301, 302, 303, 307, 308})
ALLOWED_SCHEMES = frozenset({"http", "https"})
CHUNK_SIZE = 64 * 1024


class TransportError(GooseBinError):
    """Network or I/O failure while downloading a file."""

    pass


def get_ssl_context() -> ssl.SSLContext:
    """Get an SSL context that uses certifi's CA bundle.

    Returns:
        An SSL context configured with certifi's CA certificates.
    """
    return ssl.create_default_context(cafile=certifi.where())


class _NoRedirectHandler(HTTPRedirectHandler):
    """Surface redirects as HTTPError instead of following them."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[override]
        return None


def build_secure_opener() -> OpenerDirector:
    """Build an opener with certifi verification and no automatic redirects."""
    return build_opener(HTTPSHandler(context=get_ssl_context()), _NoRedirectHandler())


def _content_length(response: Any) -> Optional[int]:
    value = response.headers.get("Content-Length") if response.headers else None
    if value is None:
        return None
    try:
        length = int(value)
    except (TypeError, ValueError):
        return None
    return length if length >= 0 else None


class Fetcher:
    """Downloads a URL to a file, following a bounded number of redirects.

    Args:
        user_agent: User-Agent header sent with every request.
        timeout: Socket timeout in seconds.
        max_redirects: Maximum number of redirect hops per download.
        opener: urllib opener to use; defaults to build_secure_opener().
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        opener: Optional[OpenerDirector] = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_redirects = max_redirects
        self._opener = opener

    @classmethod
    def from_config(cls, config: GooseBinConfig) -> "Fetcher":
        return cls(
            user_agent=config.user_agent,
            timeout=config.timeout,
            max_redirects=config.max_redirects,
        )

    @property
    def opener(self) -> OpenerDirector:
        if self._opener is None:
            self._opener = build_secure_opener()
        return self._opener

    def fetch(
        self,
        url: str,
        destination: Path,
        progress: Optional[ProgressHandler] = None,
    ) -> Path:
        """Download url into destination, streaming the body to disk.

        Args:
            url: http(s) URL to download.
            destination: File to write; created or truncated.
            progress: Optional handler receiving progress samples.

        Returns:
            The destination path.

        Raises:
            TransportError: On any network or I/O failure, an error status,
                or too many redirects. The destination is removed first.
        """
        try:
            final_url, response = self._open(url)
            with response:
                self._stream_to_file(final_url, response, destination, progress)
        except TransportError:
            destination.unlink(missing_ok=True)
            raise
        except (OSError, HTTPException) as e:
            destination.unlink(missing_ok=True)
            raise TransportError(f"Failed to download {url}: {e}") from e
        except BaseException:
            destination.unlink(missing_ok=True)
            raise
        return destination

    def _open(self, url: str):
        """Open url, following redirects by hand.

        Returns:
            Tuple of (final URL, open response).
        """
        current = url
        for _ in range(self.max_redirects + 1):
            request = self._request(current)
            try:
                return current, self.opener.open(request, timeout=self.timeout)  # nosec B310
            except HTTPError as e:
                location = e.headers.get("Location") if e.headers else None
                e.close()
                if e.code in REDIRECT_CODES and location:
                    try:
                        target = urljoin(current, location)
                    except ValueError as err:
                        raise TransportError(
                            f"Invalid redirect location {location!r} from {current}: {err}"
                        ) from err
                    LOGGER.debug(f"HTTP {e.code} redirect from {current} to {target}")
                    current = target
                    continue
                raise TransportError(
                    f"Failed to download {current}: HTTP {e.code} - {e.reason}"
                ) from e
            except URLError as e:
                raise TransportError(
                    f"Failed to download {current}: {e.reason}. "
                    "Check your network connection."
                ) from e
            except ValueError as e:
                # Malformed host or port
                raise TransportError(f"Invalid URL {current}: {e}") from e

        raise TransportError(
            f"Too many redirects (more than {self.max_redirects}) while downloading {url}"
        )

    def _request(self, url: str) -> Request:
        try:
            scheme = urlparse(url).scheme.lower()
        except ValueError as e:
            raise TransportError(f"Invalid URL {url}: {e}") from e
        if scheme not in ALLOWED_SCHEMES:
            raise TransportError(f"Unsupported URL scheme '{scheme}': {url}")
        return Request(url, headers={"User-Agent": self.user_agent})

    def _stream_to_file(
        self,
        url: str,
        response: Any,
        destination: Path,
        progress: Optional[ProgressHandler],
    ) -> None:
        total = _content_length(response)
        handler = progress or NullProgressHandler()
        handler.start(url, total)
        tracker = ProgressTracker(handler, total=total)

        with open(destination, "wb") as f:
            while True:
                chunk = response.read(CHUNK_SIZE)
                if not chunk:
                    break
                f.write(chunk)
                tracker.advance(len(chunk))
        tracker.finish()

        if total is not None and tracker.downloaded < total:
            raise TransportError(
                f"Incomplete download of {url}: "
                f"got {tracker.downloaded} of {total} bytes"
            )
        LOGGER.debug(f"Downloaded {tracker.downloaded} bytes from {url} to {destination}")
