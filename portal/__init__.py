"""Client project portal: FastAPI app, JSON API and server-rendered dashboard."""
