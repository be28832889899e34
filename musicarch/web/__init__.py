"""Web command surface (FastAPI)."""
