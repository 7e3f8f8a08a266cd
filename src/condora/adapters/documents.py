# src/condora/adapters/documents.py
from __future__ import annotations

import time
from dataclasses import dataclass, field

import fitz  # pymupdf
import requests

from condora.adapters.config import config
from condora.adapters.logging_utils import get_logger
from condora.domain.errors import ExtractionFetchError, ExtractionParseError

logger = get_logger(__name__)

_RETRY_STATUSES = (429, 502, 503, 504)


@dataclass
class HttpDocumentSource:
    """
    Fetches a listing page as text. Rate limits and gateway errors are
    retried with exponential backoff; other 4xx/5xx fail immediately.
    """
    timeout_s: float = config.FETCH_TIMEOUT_S
    max_retries: int = config.FETCH_MAX_RETRIES
    backoff_base_s: float = config.FETCH_BACKOFF_BASE_S
    user_agent: str = config.FETCH_USER_AGENT
    session: requests.Session = field(default_factory=requests.Session)

    def fetch(self, url: str) -> str:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/pdf;q=0.9,*/*;q=0.8",
        }
        last_err: Exception | None = None
        last_status: int | None = None

        for attempt in range(self.max_retries + 1):
            try:
                resp = self.session.get(url, headers=headers, timeout=self.timeout_s)
            except requests.RequestException as e:
                last_err = e
                logger.warning(
                    "document_fetch_error",
                    extra={"context": {"url": url, "attempt": attempt, "error": str(e)}},
                )
                if attempt < self.max_retries:
                    time.sleep(self.backoff_base_s * (2**attempt))
                    continue
                break

            if resp.status_code in _RETRY_STATUSES:
                last_status = resp.status_code
                wait = self.backoff_base_s * (2**attempt)
                # Respect Retry-After if present
                ra = resp.headers.get("Retry-After")
                if ra:
                    try:
                        wait = max(wait, float(ra))
                    except ValueError:
                        pass
                logger.warning(
                    "document_fetch_retry",
                    extra={"context": {"url": url, "status": resp.status_code, "attempt": attempt}},
                )
                if attempt < self.max_retries:
                    time.sleep(wait)
                    continue
                break

            if resp.status_code >= 400:
                raise ExtractionFetchError(
                    f"HTTP {resp.status_code} fetching {url}",
                    url=url,
                    status_code=resp.status_code,
                )

            content_type = resp.headers.get("Content-Type", "")
            if "application/pdf" in content_type:
                return PdfDocumentSource().read(resp.content)
            return resp.text

        err = ExtractionFetchError(
            f"Fetching {url} failed after {self.max_retries + 1} attempts",
            url=url,
            status_code=last_status,
        )
        if last_err is not None:
            raise err from last_err
        raise err


class PdfDocumentSource:
    """Text layer of a PDF, all pages joined."""

    def read(self, data: bytes) -> str:
        try:
            pdf = fitz.open(stream=data, filetype="pdf")
        except Exception as e:  # noqa: BLE001
            raise ExtractionParseError(f"Could not open PDF: {e}") from e

        try:
            parts = [page.get_text() for page in pdf]
        except Exception as e:  # noqa: BLE001
            raise ExtractionParseError(f"Could not read PDF text: {e}") from e
        finally:
            pdf.close()

        text = "\n".join(parts).strip()
        if not text:
            raise ExtractionParseError("PDF has no extractable text layer (scanned document?)")
        return text
