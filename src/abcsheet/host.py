"""
Design host capabilities - feature detection, asset upload, element insertion

The panel runs inside a design editor that owns the document. Everything the
panel does to the design goes through a DesignHost. HttpDesignHost talks to a
host bridge over HTTP:

    GET  /features                -> {"features": ["design.addElementAtPoint", ...]}
    POST /assets/upload           -> {"ref": "<asset ref>"}
    POST /design/elements/point   -> 2xx
    POST /design/elements/cursor  -> 2xx
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

import httpx

logger = logging.getLogger(__name__)

ADD_ELEMENT_AT_POINT = 'design.addElementAtPoint'
ADD_ELEMENT_AT_CURSOR = 'design.addElementAtCursor'


class HostError(Exception):
    """A host capability call failed"""


@dataclass
class ImageUpload:
    """Payload for uploading an image asset"""
    url: str
    thumbnail_url: str
    mime_type: str = 'image/svg+xml'
    type: str = 'image'
    ai_disclosure: str = 'none'

    def to_dict(self) -> dict:
        return {
            'type': self.type,
            'mimeType': self.mime_type,
            'url': self.url,
            'thumbnailUrl': self.thumbnail_url,
            'aiDisclosure': self.ai_disclosure,
        }


@dataclass
class UploadResult:
    ref: str


@dataclass
class AltText:
    text: str
    decorative: bool = False


@dataclass
class ImageElement:
    """Payload for inserting an uploaded image into the design"""
    ref: str
    alt_text: AltText
    type: str = 'image'

    def to_dict(self) -> dict:
        return {
            'type': self.type,
            'ref': self.ref,
            'altText': {
                'text': self.alt_text.text,
                'decorative': self.alt_text.decorative,
            },
        }


AddElement = Callable[[ImageElement], Awaitable[None]]


class DesignHost(ABC):
    """One method per host capability"""

    @abstractmethod
    def supports(self, feature: str) -> bool:
        ...

    @abstractmethod
    async def upload(self, request: ImageUpload) -> UploadResult:
        ...

    @abstractmethod
    async def add_element_at_point(self, element: ImageElement) -> None:
        ...

    @abstractmethod
    async def add_element_at_cursor(self, element: ImageElement) -> None:
        ...


def select_add_element(host: Optional[DesignHost]) -> Optional[AddElement]:
    """Pick the first supported insertion capability (point, then cursor)"""
    if host is None:
        return None
    candidates = [
        (ADD_ELEMENT_AT_POINT, host.add_element_at_point),
        (ADD_ELEMENT_AT_CURSOR, host.add_element_at_cursor),
    ]
    for feature, add_element in candidates:
        if host.supports(feature):
            return add_element
    return None


class HttpDesignHost(DesignHost):
    """
    DesignHost backed by an HTTP host bridge.

    Args:
        base_url: Bridge root URL
        features: Capability ids the bridge reported
        client: Optional httpx client for connection reuse (not closed by us)
        token: Optional bearer token
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        features: Iterable[str] = (),
        client: Optional[httpx.AsyncClient] = None,
        token: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip('/')
        self.features = set(features)
        self._headers = {'Authorization': f'Bearer {token}'} if token else {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    async def connect(
        cls,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        token: Optional[str] = None,
        timeout: float = 30.0,
    ) -> 'HttpDesignHost':
        """Create a host and ask the bridge which capabilities it supports"""
        host = cls(base_url, client=client, token=token, timeout=timeout)
        try:
            data = await host._request('GET', '/features')
            features = data.get('features', [])
            if not isinstance(features, list):
                raise HostError("Malformed feature list from host")
        except HostError:
            await host.aclose()
            raise
        host.features = set(features)
        logger.debug("Host %s supports: %s", host.base_url, sorted(host.features))
        return host

    async def __aenter__(self) -> 'HttpDesignHost':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def supports(self, feature: str) -> bool:
        return feature in self.features

    async def upload(self, request: ImageUpload) -> UploadResult:
        data = await self._request('POST', '/assets/upload', request.to_dict())
        ref = data.get('ref')
        if not ref:
            raise HostError("Upload response has no asset ref")
        return UploadResult(ref=str(ref))

    async def add_element_at_point(self, element: ImageElement) -> None:
        await self._request('POST', '/design/elements/point', element.to_dict())

    async def add_element_at_cursor(self, element: ImageElement) -> None:
        await self._request('POST', '/design/elements/cursor', element.to_dict())

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, json=payload, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise HostError(f"{method} {path} failed with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise HostError(f"{method} {path} failed: {e}") from e

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise HostError(f"{method} {path} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise HostError(f"{method} {path} returned {type(data).__name__}, expected an object")
        return data
