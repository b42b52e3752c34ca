from dining_enricher.enricher.enrichment_orchestrator import DiningEnricher
from dining_enricher.enricher.llm_client import VenueLLMClient

__all__ = ["DiningEnricher", "VenueLLMClient"]
