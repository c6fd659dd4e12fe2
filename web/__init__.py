"""FastAPI layer for the Stockroom credential service."""
