"""FastAPI application exposing the Inedit content API."""

import logging
from typing import Dict

from fastapi import FastAPI

from inedit_cms.api.routes import catalog, gallery, pages, settings, translations
from inedit_cms.config.content import configured_backends

app = FastAPI(title="Inedit Content API")
logger = logging.getLogger(__name__)

# Public routers
app.include_router(catalog.router)
app.include_router(pages.router)
app.include_router(settings.router)
app.include_router(translations.router)
app.include_router(gallery.router)

# Admin routers; the catalog one matches /api/admin/{domain} and must come last
app.include_router(pages.admin_router)
app.include_router(settings.admin_router)
app.include_router(translations.admin_router)
app.include_router(gallery.admin_router)
app.include_router(catalog.admin_router)


@app.get("/health")
def health() -> Dict[str, object]:
    return {"status": "ok", "backends": configured_backends()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("inedit_cms.main:app", host="127.0.0.1", port=8000, reload=True)
