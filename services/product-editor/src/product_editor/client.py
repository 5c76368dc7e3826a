"""
HTTP client for the catalog admin API.

Only the calls the editor core needs: category templates and defaults, and
product fetch/save. Authentication headers are expected on the session the
caller passes in.
"""

import json
import logging
from typing import Any, Optional

import requests

from product_editor.config import EditorSettings
from product_editor.exceptions import ApiError, ErrorContext, SaveTimeoutError

logger = logging.getLogger(__name__)

TIMEOUT_STATUS_CODES = (408, 504)


def _extract_detail(response: requests.Response) -> Optional[str]:
    """Pull a human-readable message out of an error response body."""
    try:
        body = response.json()
    except ValueError:
        text = (response.text or "").strip()
        return text or None

    if isinstance(body, str):
        return body
    if isinstance(body, dict):
        if body.get("detail"):
            return str(body["detail"])
        if body.get("error"):
            return str(body["error"])
    return json.dumps(body, default=str)


class CatalogApiClient:
    """Thin wrapper over a requests Session with error classification."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        page_size: int = 100,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.page_size = page_size

    @classmethod
    def from_settings(
        cls,
        settings: EditorSettings,
        session: Optional[requests.Session] = None,
    ) -> "CatalogApiClient":
        return cls(
            base_url=settings.require_api_url(),
            session=session,
            timeout=settings.timeout,
            page_size=settings.template_page_size,
        )

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        timeout_error: type = ApiError,
        context: Optional[ErrorContext] = None,
        **kwargs,
    ) -> Any:
        url = self._url(path)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise timeout_error(
                message=f"{method} {url} timed out after {self.timeout}s",
                method=method,
                url=url,
                context=context,
                original_exception=e,
            )
        except requests.RequestException as e:
            raise ApiError(
                message=f"{method} {url} failed: {e}",
                method=method,
                url=url,
                context=context,
                original_exception=e,
            )

        if response.status_code in TIMEOUT_STATUS_CODES:
            raise timeout_error(
                message=f"{method} {url} timed out upstream (HTTP {response.status_code})",
                method=method,
                url=url,
                status_code=response.status_code,
                context=context,
            )

        if response.status_code >= 400:
            raise ApiError(
                message=f"{method} {url} returned HTTP {response.status_code}",
                method=method,
                url=url,
                status_code=response.status_code,
                detail=_extract_detail(response),
                context=context,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def fetch_category_templates(self, category_id: int) -> list[dict]:
        """
        Fetch every template row for a category, following pagination.

        Returns:
            Flat list of ``{section, field_name, sort_order}`` rows in fetch order
        """
        rows: list[dict] = []
        next_url: Optional[str] = "/admin/category-specification-templates/"
        params: Optional[dict] = {"category": category_id, "page_size": self.page_size}
        context = ErrorContext(category_id=category_id)
        pages = 0

        while next_url:
            body = self._request("GET", next_url, params=params, context=context)
            pages += 1
            # "next" links already carry the query string
            params = None
            if isinstance(body, list):
                rows.extend(body)
                break
            if not isinstance(body, dict):
                break
            rows.extend(body.get("results") or [])
            next_url = body.get("next")

        logger.info(
            f"Fetched {len(rows)} template rows for category {category_id}",
            extra={"category_id": category_id, "metrics": {"pages": pages}},
        )
        return rows

    def fetch_category_defaults(self, category_id: int) -> dict:
        """Fetch ``{section: [{field_name, sort_order}]}`` defaults for a category."""
        body = self._request(
            "GET",
            f"/admin/categories/{category_id}/specification_defaults/",
            context=ErrorContext(category_id=category_id),
        )
        return body or {}

    def fetch_product(self, product_id: int) -> dict:
        return self._request(
            "GET",
            f"/admin/products/{product_id}/",
            context=ErrorContext(product_id=product_id),
        )

    def save_product(self, payload: dict, product_id: Optional[int] = None) -> dict:
        """
        Create (POST) or partially update (PATCH) a product.

        Raises:
            SaveTimeoutError: Client-side timeout or HTTP 408/504
            ApiError: Any other failure
        """
        context = ErrorContext(product_id=product_id)
        if product_id is None:
            return self._request(
                "POST",
                "/admin/products/",
                timeout_error=SaveTimeoutError,
                context=context,
                json=payload,
            )
        return self._request(
            "PATCH",
            f"/admin/products/{product_id}/",
            timeout_error=SaveTimeoutError,
            context=context,
            json=payload,
        )
