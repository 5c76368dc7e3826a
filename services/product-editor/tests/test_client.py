"""Tests for the catalog API client."""

from unittest.mock import Mock

import pytest
import requests

from product_editor.client import CatalogApiClient
from product_editor.config import EditorSettings
from product_editor.exceptions import ApiError, ConfigurationError, ErrorCategory, SaveTimeoutError


def _response(status_code=200, body=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.content = b"" if body is None and not text else b"x"
    response.text = text
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def client(session):
    return CatalogApiClient("https://catalog.test/api/", session=session, timeout=5)


class TestRequests:
    """Tests for request classification."""

    def test_fetch_product(self, client, session):
        """Test a product fetch hits the product detail URL."""
        session.request.return_value = _response(body={"id": 42})

        assert client.fetch_product(42) == {"id": 42}
        session.request.assert_called_once_with(
            "GET", "https://catalog.test/api/admin/products/42/", timeout=5
        )

    def test_create_uses_post(self, client, session):
        """Test saving a new product POSTs the payload."""
        session.request.return_value = _response(201, body={"id": 1})

        client.save_product({"title": "Oslo"})

        session.request.assert_called_once_with(
            "POST", "https://catalog.test/api/admin/products/", timeout=5, json={"title": "Oslo"}
        )

    def test_update_uses_patch(self, client, session):
        """Test saving an existing product PATCHes it."""
        session.request.return_value = _response(body={"id": 42})

        client.save_product({"weight": "42kg"}, product_id=42)

        args, kwargs = session.request.call_args
        assert args == ("PATCH", "https://catalog.test/api/admin/products/42/")
        assert kwargs["json"] == {"weight": "42kg"}

    def test_empty_body(self, client, session):
        """Test 204 responses return None."""
        session.request.return_value = _response(204)

        assert client.fetch_category_defaults(7) == {}

    @pytest.mark.parametrize("status_code", [408, 504])
    def test_timeout_status_on_save(self, client, session, status_code):
        """Test gateway timeouts on save raise SaveTimeoutError."""
        session.request.return_value = _response(status_code, text="Gateway Timeout")

        with pytest.raises(SaveTimeoutError) as exc_info:
            client.save_product({}, product_id=42)

        assert exc_info.value.status_code == status_code
        assert exc_info.value.category is ErrorCategory.TIMEOUT
        assert "Request timed out" in exc_info.value.user_message

    def test_client_timeout_on_save(self, client, session):
        """Test a client-side timeout on save raises SaveTimeoutError."""
        session.request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(SaveTimeoutError) as exc_info:
            client.save_product({})

        assert isinstance(exc_info.value.original_exception, requests.Timeout)

    def test_timeout_on_fetch_is_plain_api_error(self, client, session):
        """Test timeouts outside save are reported as ApiError."""
        session.request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(ApiError) as exc_info:
            client.fetch_product(42)

        assert not isinstance(exc_info.value, SaveTimeoutError)

    def test_connection_error(self, client, session):
        """Test transport failures raise ApiError."""
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ApiError) as exc_info:
            client.save_product({})

        assert not isinstance(exc_info.value, SaveTimeoutError)
        assert exc_info.value.status_code is None

    def test_error_detail(self, client, session):
        """Test the server's detail message is surfaced."""
        session.request.return_value = _response(400, body={"detail": "SKU already exists"})

        with pytest.raises(ApiError) as exc_info:
            client.save_product({})

        assert exc_info.value.status_code == 400
        assert exc_info.value.user_message == "SKU already exists"

    def test_error_field_dump(self, client, session):
        """Test field errors without a detail key are dumped as JSON."""
        session.request.return_value = _response(400, body={"title": ["This field is required."]})

        with pytest.raises(ApiError) as exc_info:
            client.save_product({})

        assert "This field is required." in exc_info.value.user_message

    def test_error_plain_text(self, client, session):
        """Test a non-JSON error body is used as text."""
        session.request.return_value = _response(500, text="Internal Server Error")

        with pytest.raises(ApiError) as exc_info:
            client.fetch_product(1)

        assert exc_info.value.detail == "Internal Server Error"


class TestTemplates:
    """Tests for template pagination."""

    def test_follows_next_links(self, client, session):
        """Test every page is fetched and rows are concatenated."""
        session.request.side_effect = [
            _response(body={
                "results": [{"section": "features", "field_name": "Weight"}],
                "next": "https://catalog.test/api/admin/category-specification-templates/?page=2",
            }),
            _response(body={
                "results": [{"section": "features", "field_name": "Height"}],
                "next": None,
            }),
        ]

        rows = client.fetch_category_templates(7)

        assert [r["field_name"] for r in rows] == ["Weight", "Height"]
        first, second = session.request.call_args_list
        assert first.kwargs["params"] == {"category": 7, "page_size": 100}
        assert second.args[1].endswith("?page=2")
        assert second.kwargs["params"] is None

    def test_bare_list(self, client, session):
        """Test an unpaginated list response."""
        session.request.return_value = _response(body=[{"section": "features", "field_name": "Weight"}])

        assert len(client.fetch_category_templates(7)) == 1
        assert session.request.call_count == 1


class TestFromSettings:
    """Tests for building the client from settings."""

    def test_from_settings(self, session):
        """Test settings are carried onto the client."""
        settings = EditorSettings(api_url="https://catalog.test/api/", timeout=12, template_page_size=50)
        client = CatalogApiClient.from_settings(settings, session=session)

        assert client.base_url == "https://catalog.test/api"
        assert client.timeout == 12
        assert client.page_size == 50

    def test_missing_url(self):
        """Test a missing API URL is a configuration error."""
        with pytest.raises(ConfigurationError):
            CatalogApiClient.from_settings(EditorSettings())
