"""FastAPI application exposing the extraction engine as a local JSON API."""

import secrets
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .. import __version__
from ..core.errors import InvalidEncoding, MarkdownLDError
from ..engine import parse_markdown
from ..lint import validate_links
from ..runtime import Runtime


class ParseRequest(BaseModel):
    text: str
    document_id: str | None = None


def create_app(runtime: Runtime, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime with config and optional document index
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="markdown-ld API",
        description="Structural extraction for Markdown documents",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or not secrets.compare_digest(credentials.credentials, token):
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    @app.exception_handler(MarkdownLDError)
    async def engine_error(request: Request, exc: MarkdownLDError) -> JSONResponse:
        status = 400 if isinstance(exc, InvalidEncoding) else 500
        return JSONResponse(status_code=status, content=exc.to_dict())

    def _parse(source: str | bytes, document_id: str | None):
        return parse_markdown(
            source,
            document_id=document_id,
            index=runtime.index,
            config=runtime.config.engine,
        )

    @app.get("/health")
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "ok",
            "version": __version__,
            "index": str(runtime.index.root) if runtime.index else None,
        }

    @app.post("/parse")
    async def parse(body: ParseRequest, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Full document record for JSON-wrapped text."""
        return _parse(body.text, body.document_id).to_dict()

    @app.post("/parse/raw")
    async def parse_raw(
        request: Request,
        document_id: str | None = Query(None, description="Document id"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Full document record for a raw request body; the body must be UTF-8."""
        return _parse(await request.body(), document_id).to_dict()

    @app.post("/links")
    async def links(body: ParseRequest, auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        """Classified links."""
        return [link.to_dict() for link in _parse(body.text, body.document_id).links]

    @app.post("/headings")
    async def headings(body: ParseRequest, auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        """Headings with unique slugs."""
        return [h.to_dict() for h in _parse(body.text, body.document_id).headings]

    @app.post("/lint")
    async def lint(body: ParseRequest, auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        """Link findings."""
        findings = validate_links(
            body.text,
            index=runtime.index,
            document_id=body.document_id,
            config=runtime.config.engine,
        )
        return [f.to_dict() for f in findings]

    @app.get("/backlinks")
    async def backlinks(
        id: str = Query(..., description="Document id"),
        auth: None = Depends(verify_token),
    ) -> list[dict[str, Any]]:
        """Incoming links for an indexed document."""
        if runtime.index is None:
            raise HTTPException(status_code=400, detail="No document index configured")
        return [e.to_dict() for e in runtime.build_graph().links_in(id)]

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
