import logging
import os
from typing import Any, Dict, Optional

import requests
from google.cloud import storage

from .config import BASE_URL, REQUEST_TIMEOUT
from .errors import FetchError

logger = logging.getLogger(__name__)


# --- API HELPERS ---
def explorer_get(params: Dict[str, Any], session: Optional[requests.Session] = None,
                 timeout: float = REQUEST_TIMEOUT) -> Dict[str, Any]:
    """
    Single GET against the explorer API, decoded as JSON.
    No retry: network and decode failures surface as FetchError.
    """
    http = session or requests
    api_key = str(params.get("apikey") or "")

    try:
        response = http.get(BASE_URL, params=params, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        raise FetchError(f"Request failed: {_redact(str(e), api_key)}") from e
    except ValueError as e:
        raise FetchError(f"Explorer returned invalid JSON: {e}") from e


def _redact(message: str, secret: str) -> str:
    """Keeps the API key out of logs and error messages."""
    if not secret:
        return message
    return message.replace(secret, "[REDACTED]")


# --- GCS HELPERS ---
def get_gcs_client():
    return storage.Client()


def split_gcs_uri(uri: str):
    """'gs://bucket/a/b.html' -> ('bucket', 'a/b.html')"""
    bucket_name, _, blob_path = uri[len("gs://"):].partition("/")
    if not bucket_name or not blob_path:
        raise ValueError(f"Invalid GCS destination: {uri}")
    return bucket_name, blob_path


def save_report(content: str, destination: str, content_type: str = "text/html",
                log: Optional[logging.Logger] = None) -> str:
    """
    Saves a rendered report.

    > gs://bucket/path -> uploaded to Google Cloud Storage
    > anything else    -> written to the local filesystem
    """
    log = log or logger
    if destination.startswith("gs://"):
        bucket_name, blob_path = split_gcs_uri(destination)
        bucket = get_gcs_client().bucket(bucket_name)
        bucket.blob(blob_path).upload_from_string(content, content_type=content_type)
        log.info(f"Report saved to Google Cloud Storage: {destination}")
        return destination

    folder = os.path.dirname(destination)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(destination, "w", encoding="utf-8") as f:
        f.write(content)
    log.info(f"Report saved to {destination}")
    return destination
