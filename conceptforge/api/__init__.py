"""HTTP API for ConceptForge (FastAPI)."""
