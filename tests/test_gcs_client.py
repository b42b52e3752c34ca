import json
from unittest.mock import MagicMock

from google.api_core.exceptions import NotFound

from dining_enricher.clients.gcs_client import GCSAuditStore


def _store():
    client = MagicMock()
    bucket = client.bucket.return_value
    blob = bucket.blob.return_value
    return GCSAuditStore(bucket_name="test-bucket", client=client), bucket, blob


def test_put_uploads_json_and_returns_public_url():
    store, bucket, blob = _store()

    url = store.put("resorts/co/vail/dining-venues.json", {"version": "1.0", "model": "gpt-4o-mini"})

    assert url == "https://storage.googleapis.com/test-bucket/resorts/co/vail/dining-venues.json"
    bucket.blob.assert_called_with("resorts/co/vail/dining-venues.json")
    body = blob.upload_from_string.call_args.args[0]
    assert json.loads(body)["version"] == "1.0"
    assert blob.upload_from_string.call_args.kwargs == {"content_type": "application/json"}
    assert blob.metadata["model"] == "gpt-4o-mini"


def test_get_returns_none_for_missing_object():
    store, _, blob = _store()
    blob.download_as_text.side_effect = NotFound("no such object")

    assert store.get("resorts/co/vail/dining-venues.json") is None


def test_get_parses_document():
    store, _, blob = _store()
    blob.download_as_text.return_value = '{"raw_response": {"venues": []}}'

    assert store.get("x") == {"raw_response": {"venues": []}}
