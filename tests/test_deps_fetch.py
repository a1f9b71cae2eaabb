"""Tests for deps/fetch.py module.

These tests use mocked HTTP responses to test downloading and the
guarantee that failed downloads leave nothing behind.
"""

import httpx
import pytest
import respx

from cult.deps.fetch import download_artifact
from cult.errors import ResolutionError

URL = "https://repo.example.com/maven2/org/example/lib/2.3.0/lib-2.3.0.jar"


class _TruncatedStream(httpx.SyncByteStream):
    """Response body that fails part way through."""

    def __iter__(self):
        yield b"PK\x03\x04partial"
        raise httpx.ReadError("connection reset")


class TestDownloadArtifact:
    """Tests for download_artifact function."""

    @respx.mock
    def test_successful_download(self, tmp_path):
        """Should download the artifact to the destination."""
        content = b"PK\x03\x04jar-bytes"
        respx.get(URL).mock(return_value=httpx.Response(200, content=content))

        dest_path = tmp_path / "lib" / "lib-2.3.0.jar"
        with httpx.Client() as client:
            written = download_artifact(URL, dest_path, client=client)

        assert written == len(content)
        assert dest_path.read_bytes() == content
        assert list(dest_path.parent.iterdir()) == [dest_path]

    @respx.mock
    def test_creates_own_client(self, tmp_path):
        """Should work without an explicit client."""
        respx.get(URL).mock(return_value=httpx.Response(200, content=b"jar"))

        dest_path = tmp_path / "lib-2.3.0.jar"
        download_artifact(URL, dest_path)

        assert dest_path.read_bytes() == b"jar"

    @respx.mock
    def test_http_error(self, tmp_path):
        """Should raise ResolutionError on HTTP error and leave no file."""
        respx.get(URL).mock(return_value=httpx.Response(404))

        dest_path = tmp_path / "lib-2.3.0.jar"
        with httpx.Client() as client, pytest.raises(ResolutionError) as exc_info:
            download_artifact(URL, dest_path, client=client)

        assert exc_info.value.code == "http_error"
        assert URL in exc_info.value.message
        assert list(tmp_path.iterdir()) == []

    @respx.mock
    def test_timeout(self, tmp_path):
        """Should raise ResolutionError on timeout."""
        respx.get(URL).mock(side_effect=httpx.ConnectTimeout("timed out"))

        with httpx.Client() as client, pytest.raises(ResolutionError) as exc_info:
            download_artifact(URL, tmp_path / "lib-2.3.0.jar", client=client)

        assert exc_info.value.code == "timeout"

    @respx.mock
    def test_network_error(self, tmp_path):
        """Should raise ResolutionError on connection failure."""
        respx.get(URL).mock(side_effect=httpx.ConnectError("unreachable"))

        with httpx.Client() as client, pytest.raises(ResolutionError) as exc_info:
            download_artifact(URL, tmp_path / "lib-2.3.0.jar", client=client)

        assert exc_info.value.code == "network_error"

    @respx.mock
    def test_truncated_download_leaves_no_file(self, tmp_path):
        """A body that fails mid-stream must not leave a cache entry."""
        respx.get(URL).mock(
            return_value=httpx.Response(200, stream=_TruncatedStream())
        )

        dest_path = tmp_path / "lib-2.3.0.jar"
        with httpx.Client() as client, pytest.raises(ResolutionError):
            download_artifact(URL, dest_path, client=client)

        assert not dest_path.exists()
        assert list(tmp_path.iterdir()) == []

    @respx.mock
    def test_single_attempt(self, tmp_path):
        """Should not retry a failed download."""
        route = respx.get(URL).mock(return_value=httpx.Response(500))

        with httpx.Client() as client, pytest.raises(ResolutionError):
            download_artifact(URL, tmp_path / "lib-2.3.0.jar", client=client)

        assert route.call_count == 1
