"""
Browser front end: one page with a scan button and a read-aloud toggle.

The page and its assets live under /static and "/"; every other path falls
through to the scan service, so the page talks to the API on the same origin.
"""
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

WEB_DIR = Path(__file__).resolve().parent
INDEX_PAGE = WEB_DIR / "templates" / "index.html"


def create_web_app(api_app: FastAPI | None = None) -> FastAPI:
    if api_app is None:
        from readaloud.services.api import app as api_app

    web = FastAPI(title="readaloud web")

    @web.get("/", include_in_schema=False)
    def index():
        return FileResponse(INDEX_PAGE, media_type="text/html")

    web.mount("/static", StaticFiles(directory=WEB_DIR / "static"), name="static")
    # Mounted at "" it matches everything, so it has to come after the page routes
    web.mount("", api_app)
    return web


app = create_web_app()
