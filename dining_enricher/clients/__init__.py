"""Clients for external services: the LLM provider, the venue store and audit storage."""
from dining_enricher.clients.openai_client import OpenAIClient
from dining_enricher.clients.supabase_client import SupabaseStore
from dining_enricher.clients.gcs_client import GCSAuditStore

__all__ = ["OpenAIClient", "SupabaseStore", "GCSAuditStore"]
