"""Application services used by the API routers."""
