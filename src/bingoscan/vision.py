"""
Google Cloud Vision collaborator.

Builds the ``images:annotate`` request, maps HTTP failures onto the domain
error taxonomy and turns the response into Fragments. The transport is a
``requests.Session`` so tests can substitute a fake.

Usage:
    from bingoscan.vision import VisionClient

    client = VisionClient()
    fragments = client.request_annotations(image_bytes, api_key)
"""

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

from .config import DEFAULT_CONFIG, PipelineConfig
from .errors import CredentialError, InputFormatError, ProviderError, QuotaError
from .fragments import Fragment

log = logging.getLogger(__name__)


VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"

ImagePayload = Union[bytes, str]


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


def encode_image(payload: ImagePayload) -> str:
    """
    Normalise an image payload to the base64 content the API expects.

    Accepts raw image bytes, a base64 string, or a ``data:`` URL.

    Raises:
        InputFormatError: Empty payload or invalid base64
    """
    if isinstance(payload, (bytes, bytearray)):
        if not payload:
            raise InputFormatError("Image payload is empty")
        return base64.b64encode(bytes(payload)).decode("ascii")

    if not isinstance(payload, str):
        raise InputFormatError(f"Unsupported image payload type: {type(payload).__name__}")

    content = payload.strip()
    if content.startswith("data:"):
        if "," not in content:
            raise InputFormatError("Malformed data URL: missing ','")
        content = content.split(",", 1)[1]

    if not content:
        raise InputFormatError("Image payload is empty")

    try:
        base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InputFormatError("Image payload is not valid base64") from exc
    return content


def build_annotate_request(
    content: str, config: PipelineConfig = DEFAULT_CONFIG
) -> Dict[str, Any]:
    """Request body asking for both general and document text detection."""
    return {
        "requests": [
            {
                "image": {"content": content},
                "features": [
                    {"type": "TEXT_DETECTION", "maxResults": config.max_results},
                    {"type": "DOCUMENT_TEXT_DETECTION", "maxResults": config.max_results},
                ],
                "imageContext": {
                    "languageHints": list(config.language_hints),
                    "textDetectionParams": {
                        "enableTextDetectionConfidenceScore": True,
                    },
                },
            }
        ]
    }


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


def _error_detail(body: Any) -> str:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message", ""))
        if error:
            return str(error)
    return ""


def check_status(status: int, body: Any = None) -> None:
    """
    Map a non-2xx HTTP status onto the error taxonomy.

    Raises:
        QuotaError: 429
        CredentialError: 403
        ProviderError: 400 (malformed request) and any other non-2xx
    """
    if 200 <= status < 300:
        return

    detail = _error_detail(body)
    if status == 429:
        raise QuotaError("API quota exceeded. Please try again later.")
    if status == 403:
        raise CredentialError("Invalid API key. Please check your configuration.")
    if status == 400:
        raise ProviderError(f"Malformed OCR request: {detail or 'bad request'}", status, detail)
    raise ProviderError(f"Vision API error {status}: {detail or 'no detail'}", status, detail)


def parse_annotate_response(
    body: Dict[str, Any], default_confidence: float = 0.8
) -> List[Fragment]:
    """
    Convert an ``images:annotate`` response into Fragments.

    The first text annotation is the full-page text and is skipped.

    Raises:
        ProviderError: Error object embedded in the response
    """
    responses = body.get("responses") or [{}]
    first = responses[0]

    if first.get("error"):
        detail = _error_detail(first)
        raise ProviderError(f"Vision API error: {detail}", None, detail)

    annotations: Sequence[Dict[str, Any]] = first.get("textAnnotations") or []
    fragments = [
        Fragment.from_annotation(a, default_confidence=default_confidence)
        for a in annotations[1:]
    ]

    log.debug("Raw OCR results: %d items", len(fragments))
    if fragments:
        confidences = [f.confidence for f in fragments]
        log.debug("Confidence range: %.2f to %.2f", min(confidences), max(confidences))
    return fragments


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class VisionClient:
    """
    Blocking client for the Vision ``images:annotate`` endpoint.

    Args:
        config: Request tunables (max results, timeout, language hints)
        session: requests-compatible session; a new one is created if None
        endpoint: Override the API URL
    """

    def __init__(
        self,
        config: PipelineConfig = DEFAULT_CONFIG,
        session: Optional[requests.Session] = None,
        endpoint: str = VISION_ENDPOINT,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.endpoint = endpoint

    def request_annotations(self, image: ImagePayload, credential: str) -> List[Fragment]:
        """
        Run text detection on an image.

        Args:
            image: Raw bytes, base64 string or data URL
            credential: API key

        Returns:
            Fragments, in provider order

        Raises:
            InputFormatError, CredentialError, QuotaError, ProviderError
        """
        if not credential:
            raise CredentialError("No API key configured.")

        payload = build_annotate_request(encode_image(image), self.config)

        try:
            response = self.session.post(
                self.endpoint,
                params={"key": credential},
                json=payload,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as exc:
            raise ProviderError(f"Could not reach Vision API: {exc}", None, str(exc)) from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        check_status(response.status_code, body)

        if not isinstance(body, dict):
            raise ProviderError(
                "Vision API returned a non-JSON body", response.status_code, response.text[:500]
            )

        return parse_annotate_response(body, self.config.default_annotation_confidence)
