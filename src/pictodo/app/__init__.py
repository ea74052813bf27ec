"""FastAPI application package for Pictodo."""
