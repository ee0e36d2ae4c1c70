"""GTD Core FastAPI application."""
