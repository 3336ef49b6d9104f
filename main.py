"""Main entrypoint for running the Firefly AI categorizer API with Uvicorn."""

from ai_categorize.core.settings import get_settings
from ai_categorize.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port)
