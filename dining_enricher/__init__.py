"""LLM-driven dining venue enrichment for ski resorts."""
