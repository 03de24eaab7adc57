import httpx

from src.main import app


def get_async_client() -> httpx.AsyncClient:
    """In-process client; requests go straight to the ASGI app (no lifespan)."""

    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
