"""Tests for filesystem and HTTP transports."""

from unittest.mock import MagicMock

import pytest
import requests

from catalog_exchange.errors import TransportError
from catalog_exchange.transport import FileSystemTransport, HttpTransport, TransportAdapter


def _response(status_code=200, content=b""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.reason = "OK" if status_code < 400 else "Error"
    resp.content = content
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return resp


class TestFileSystemTransport:
    """Tests for FileSystemTransport."""

    def test_save_and_read(self, tmp_path):
        transport = FileSystemTransport(tmp_path / "exports")
        location = transport.save_file(b"id\r\n", "products.csv")

        assert location == str(tmp_path / "exports" / "products.csv")
        assert transport.read_file("products.csv") == b"id\r\n"

    def test_is_a_transport_adapter(self, tmp_path):
        assert isinstance(FileSystemTransport(tmp_path), TransportAdapter)

    def test_missing_file(self, tmp_path):
        with pytest.raises(TransportError):
            FileSystemTransport(tmp_path).read_file("variants.csv")

    @pytest.mark.parametrize("name", ["../products.csv", "a/b.csv", "", ".."])
    def test_rejects_paths(self, tmp_path, name):
        with pytest.raises(TransportError):
            FileSystemTransport(tmp_path).save_file(b"", name)


class TestHttpTransport:
    """Tests for HttpTransport with a mocked session."""

    def test_read_file(self):
        session = MagicMock()
        session.request.return_value = _response(content=b"id,title\r\n")
        transport = HttpTransport("https://files.example.com/catalog/", session=session)

        assert transport.read_file("products.csv") == b"id,title\r\n"
        method, url = session.request.call_args[0]
        assert (method, url) == ("GET", "https://files.example.com/catalog/products.csv")

    def test_save_file_puts_bytes(self):
        session = MagicMock()
        session.request.return_value = _response()
        transport = HttpTransport("https://files.example.com", session=session)

        url = transport.save_file(b"data", "variants.csv")

        assert url == "https://files.example.com/variants.csv"
        assert session.request.call_args[0][0] == "PUT"
        assert session.request.call_args[1]["data"] == b"data"

    def test_retries_on_server_errors(self):
        session = MagicMock()
        session.request.side_effect = [_response(503), _response(content=b"ok")]
        sleeps = []
        transport = HttpTransport("https://files.example.com", session=session, sleep=sleeps.append)

        assert transport.read_file("products.csv") == b"ok"
        assert session.request.call_count == 2
        assert len(sleeps) == 1

    def test_retries_on_connection_error_then_fails(self):
        session = MagicMock()
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        transport = HttpTransport(
            "https://files.example.com", session=session, max_retries=2, sleep=lambda _: None
        )

        with pytest.raises(TransportError):
            transport.read_file("products.csv")
        assert session.request.call_count == 3

    def test_client_error_not_retried(self):
        session = MagicMock()
        session.request.return_value = _response(404)
        transport = HttpTransport("https://files.example.com", session=session, sleep=lambda _: None)

        with pytest.raises(TransportError):
            transport.read_file("products.csv")
        assert session.request.call_count == 1

    @pytest.mark.parametrize("url", ["ftp://files.example.com", "javascript:alert(1)", "files.example.com"])
    def test_rejects_non_http_urls(self, url):
        with pytest.raises(TransportError):
            HttpTransport(url, session=MagicMock())
