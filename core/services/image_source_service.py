# =============================================================================
# core/services/image_source_service.py - Source Image Acquisition
# =============================================================================
# Turns the imageData field of a cover request into raw bytes:
# - http(s) URLs are downloaded with httpx
# - anything else is treated as base64, with an optional data URI prefix
# =============================================================================

import base64
import binascii
import logging
import re

import httpx

from core.exceptions import DecodeError, FetchError, InputTooLargeError
from core.models.cover import PipelineStage

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = re.compile(r"^data:image/\w+;base64,")

DEFAULT_FETCH_TIMEOUT = 15.0


def is_url(image_data: str) -> bool:
    """True when image_data should be downloaded rather than base64-decoded."""
    return image_data[:8].lower().startswith(("http://", "https://"))


def decode_base64_image(image_data: str) -> bytes:
    """
    Decode a base64 image string, stripping a data:image/*;base64, prefix.

    Whitespace is ignored and missing padding is tolerated, matching what
    browsers put in FileReader data URIs.

    Raises:
        DecodeError: If the payload is not valid base64 or decodes to nothing
    """
    payload = DATA_URI_PREFIX.sub("", image_data, count=1)
    payload = "".join(payload.split())
    payload += "=" * (-len(payload) % 4)

    try:
        data = base64.b64decode(payload)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid base64 payload ({e})", stage=PipelineStage.ACQUIRING) from e

    if not data:
        raise DecodeError("image payload is empty", stage=PipelineStage.ACQUIRING)
    return data


class ImageSourceService:
    """
    Acquires source image bytes from a URL or a base64 string.

    The httpx client can be injected for tests; otherwise a short-lived
    client is created per download.
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        max_bytes: int | None = None,
    ):
        self._http_client = http_client
        self.timeout = timeout
        self.max_bytes = max_bytes

    def acquire(self, image_data: str) -> bytes:
        """
        Return the raw bytes described by image_data.

        Raises:
            FetchError: If a URL cannot be retrieved
            DecodeError: If a base64 payload is invalid
            InputTooLargeError: If the bytes exceed max_bytes
        """
        if is_url(image_data):
            data = self.fetch(image_data)
        else:
            data = decode_base64_image(image_data)
            self._check_size(len(data))

        logger.debug(f"Acquired {len(data)} source bytes")
        return data

    def fetch(self, url: str) -> bytes:
        """
        Download url and return the full response body.

        The body is streamed so max_bytes is enforced before the whole
        image is held in memory.
        """
        if self._http_client is not None:
            return self._fetch_with(self._http_client, url)

        with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
            return self._fetch_with(client, url)

    def _fetch_with(self, client: httpx.Client, url: str) -> bytes:
        try:
            with client.stream("GET", url, timeout=self.timeout, follow_redirects=True) as response:
                if not response.is_success:
                    raise FetchError(url, f"{response.status_code} {response.reason_phrase}".strip())

                declared = response.headers.get("content-length")
                if declared and declared.isdigit():
                    self._check_size(int(declared))

                chunks: list[bytes] = []
                received = 0
                for chunk in response.iter_bytes():
                    received += len(chunk)
                    self._check_size(received)
                    chunks.append(chunk)

        except httpx.HTTPError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

        logger.info(f"Fetched source image from {url} ({received} bytes)")
        return b"".join(chunks)

    def _check_size(self, size_bytes: int) -> None:
        if self.max_bytes is not None and size_bytes > self.max_bytes:
            raise InputTooLargeError(size_bytes, self.max_bytes)
