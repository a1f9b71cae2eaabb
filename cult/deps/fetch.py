"""Remote artifact fetch.

This module handles:
- Streaming a remote archive to the local dependency cache
- Guaranteeing that only complete downloads ever land at the final path

Downloads are written to a temporary file next to the destination and
renamed into place once the whole body has been received, so an
interrupted transfer never masquerades as a cached artifact.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import httpx

from cult.errors import ResolutionError

logger = logging.getLogger(__name__)

# Timeout for downloads (seconds)
DOWNLOAD_TIMEOUT = 300

# Chunk size for downloads (bytes)
DOWNLOAD_CHUNK_SIZE = 64 * 1024  # 64 KB


def download_artifact(
    url: str,
    dest_path: Path,
    client: httpx.Client | None = None,
    timeout: float = DOWNLOAD_TIMEOUT,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
) -> int:
    """Download an artifact to ``dest_path`` in a single attempt.

    Args:
        url: URL to download from.
        dest_path: Final path for the artifact.
        client: HTTPX client instance; a short-lived one is created if None.
        timeout: Download timeout in seconds.
        chunk_size: Size of chunks to download.

    Returns:
        Number of bytes written.

    Raises:
        ResolutionError: If the download fails for any reason. No file is
            left at ``dest_path`` in that case.
    """
    if client is None:
        with httpx.Client(follow_redirects=True) as own_client:
            return download_artifact(
                url, dest_path, client=own_client, timeout=timeout, chunk_size=chunk_size
            )

    logger.info("Downloading %s to %s", url, dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=dest_path.parent, prefix=f".{dest_path.name}.", suffix=".part"
    )
    tmp_path = Path(tmp_name)
    total_bytes = 0

    try:
        with os.fdopen(fd, "wb") as f:
            with client.stream("GET", url, timeout=timeout) as response:
                response.raise_for_status()
                for chunk in response.iter_bytes(chunk_size):
                    f.write(chunk)
                    total_bytes += len(chunk)
        os.replace(tmp_path, dest_path)

    except httpx.HTTPStatusError as e:
        tmp_path.unlink(missing_ok=True)
        raise ResolutionError(
            f"could not fetch library: {url} "
            f"({e.response.status_code} {e.response.reason_phrase})",
            code="http_error",
            path=url,
        ) from e
    except httpx.TimeoutException as e:
        tmp_path.unlink(missing_ok=True)
        raise ResolutionError(
            f"could not fetch library: {url} (timed out)",
            code="timeout",
            path=url,
        ) from e
    except httpx.RequestError as e:
        tmp_path.unlink(missing_ok=True)
        raise ResolutionError(
            f"could not fetch library: {url} ({e})",
            code="network_error",
            path=url,
        ) from e
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise ResolutionError(
            f"could not write library `{dest_path}`: {e}",
            code="os_error",
            path=dest_path,
        ) from e
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.info("Downloaded %s (%d bytes)", dest_path.name, total_bytes)
    return total_bytes


__all__ = ["DOWNLOAD_CHUNK_SIZE", "DOWNLOAD_TIMEOUT", "download_artifact"]
