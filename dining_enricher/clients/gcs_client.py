"""
Google Cloud Storage audit store for per-resort dining snapshots.
"""
import json
from typing import Any, Dict, Optional

from google.api_core.exceptions import NotFound
from google.cloud import storage
from loguru import logger

from dining_enricher.config import GCS_BUCKET_NAME, GCS_KEY_FILE


class GCSAuditStore:
    """Reads and writes JSON audit documents in a single bucket."""

    def __init__(self, bucket_name: str = GCS_BUCKET_NAME, key_file: Optional[str] = GCS_KEY_FILE, client=None):
        if client is None:
            client = storage.Client.from_service_account_json(key_file) if key_file else storage.Client()
        self.client = client
        self.bucket_name = bucket_name
        self.bucket = client.bucket(bucket_name)
        logger.debug(f"GCS audit store initialized for bucket {bucket_name}")

    def put(self, path: str, document: Dict[str, Any]) -> str:
        """
        Upload a JSON document.

        Returns:
            str: Public URL of the uploaded object.
        """
        blob = self.bucket.blob(path)
        blob.cache_control = "public, max-age=300"
        blob.metadata = {
            "enricher": "dining-enricher",
            "version": str(document.get("version", "")),
            "enrichedAt": str(document.get("enriched_at", "")),
            "model": str(document.get("model", "")),
        }
        blob.upload_from_string(
            json.dumps(document, indent=2, default=str),
            content_type="application/json",
        )
        return f"https://storage.googleapis.com/{self.bucket_name}/{path}"

    def exists(self, path: str) -> bool:
        return self.bucket.blob(path).exists()

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            content = self.bucket.blob(path).download_as_text()
        except NotFound:
            return None
        return json.loads(content)
