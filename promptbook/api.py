"""
HTTP boundary for PromptBook.

Maps catalog operations onto FastAPI routes:
- NotFoundError -> 404
- Accept: application/json -> JSON, otherwise raw markdown
- The first catalog build happens in create_app; if it fails the app is
  never created, so the server refuses to start rather than serve nothing.

Run with:
    promptbook serve
    uvicorn promptbook.api:create_app --factory
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .archive import ALL, BUNDLE_NAME
from .config import Settings, configure_logging, load_settings
from .errors import CatalogUnavailableError, NotFoundError
from .models import PROMPT
from .service import CatalogService

logger = logging.getLogger(__name__)

CACHE_HEADERS = {"Cache-Control": "public, max-age=3600, s-maxage=3600"}
MARKDOWN_MEDIA_TYPE = "text/markdown; charset=utf-8"


def wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")


def create_app(
    service: Optional[CatalogService] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create the FastAPI app and perform the first catalog build.

    Raises:
        PromptBookError: If the first build fails
    """
    if settings is None:
        settings = load_settings()
        configure_logging(settings.log_level)
    if service is None:
        service = CatalogService.from_settings(settings)

    if not service.store.is_built:
        service.store.load()
    logger.info(f"✓ Catalog ready: {service.stats()['total']} nodes")

    app = FastAPI(title="PromptBook", version="1.0.0")
    app.state.service = service

    allowed_origins = settings.allowed_origins
    if allowed_origins == ["*"]:
        logger.warning("CORS is set to allow all origins. This is not recommended for production!")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(CatalogUnavailableError)
    def catalog_unavailable(_request: Request, exc: CatalogUnavailableError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=503)

    @app.get("/health")
    def health_check() -> Dict:
        return {
            "status": "healthy",
            "catalog": service.stats(),
            "last_error": str(service.store.last_error) if service.store.last_error else None,
        }

    @app.get("/api/catalog")
    def list_catalog() -> JSONResponse:
        items = service.get_catalog_listing()
        return JSONResponse({
            "total": len(items),
            "categories": service.get_categories(),
            "items": items,
        })

    @app.post("/api/catalog/rebuild")
    def rebuild_catalog() -> JSONResponse:
        rebuilt = service.store.rebuild()
        error = service.store.last_error
        return JSONResponse(
            {
                "rebuilt": rebuilt,
                "error": str(error) if error and not rebuilt else None,
                "catalog": service.stats(),
            },
            status_code=200 if rebuilt else 409,
        )

    @app.get("/api/prompts")
    def list_prompts() -> JSONResponse:
        prompts = service.get_prompt_listing()
        return JSONResponse({
            "total": len(prompts),
            "categories": service.get_categories(PROMPT),
            "prompts": prompts,
        })

    @app.get("/api/content/{slug:path}")
    def get_content(slug: str, request: Request) -> Response:
        try:
            content = service.get_content(slug)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

        if wants_json(request):
            return JSONResponse(content)
        return Response(content["content"], media_type=MARKDOWN_MEDIA_TYPE, headers=CACHE_HEADERS)

    @app.get("/api/skills")
    def list_skills() -> JSONResponse:
        skills = service.get_skill_listing()
        return JSONResponse({"total": len(skills), "skills": skills})

    @app.get("/api/skills/all")
    def list_skills_with_content() -> JSONResponse:
        skills = service.get_all_skills_with_content()
        return JSONResponse({"total": len(skills), "skills": skills})

    @app.get("/api/skills/all/download")
    def download_all_skills() -> Response:
        if not service.get_skill_listing():
            raise HTTPException(status_code=404, detail="No skills found")
        data = service.get_archive_bytes(ALL)
        return Response(
            data,
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{BUNDLE_NAME}"'},
        )

    @app.get("/api/skills/{slug:path}/download")
    def download_skill(slug: str) -> Response:
        try:
            filename, data = service.get_skill_download(slug)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

        return Response(
            data,
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.get("/api/skills/{slug:path}")
    def get_skill(slug: str, request: Request) -> Response:
        try:
            skill = service.get_skill_content(slug)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

        if wants_json(request):
            return JSONResponse(skill)
        return Response(skill["content"], media_type=MARKDOWN_MEDIA_TYPE, headers=CACHE_HEADERS)

    @app.get("/llms-full.txt")
    def llms_full() -> PlainTextResponse:
        return PlainTextResponse(service.get_aggregated_export(), headers=CACHE_HEADERS)

    return app


def run_server(settings: Optional[Settings] = None, host: str = "0.0.0.0", reload: bool = False) -> None:
    try:
        import uvicorn
    except ModuleNotFoundError as exc:  # pragma: no cover - runtime guard
        raise SystemExit(
            "Missing dependency 'uvicorn'. Install it with 'pip install uvicorn[standard]' and retry."
        ) from exc

    settings = settings or load_settings()
    uvicorn.run(
        "promptbook.api:create_app",
        factory=True,
        host=host,
        port=settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
