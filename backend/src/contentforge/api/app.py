"""FastAPI application."""

import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from contentforge.auth import (
    GatewayIdentityMiddleware,
    PolicySet,
    ensure_permission,
    get_user_context,
)
from contentforge.content import (
    DuplicateFieldError,
    EngineConfig,
    FieldRow,
    MalformedReferenceError,
    MaterializationError,
    UnknownDataTypeError,
    materialize,
)
from contentforge.content.documents import (
    content_list,
    content_with_fields,
    default_values,
    public_content,
    public_content_list,
)
from contentforge.content.models import ContentEntity, ContentRevision, Language, Page
from contentforge.paths import resolve_base_path, resolve_metadata_path
from contentforge.persistence import DatabaseConfig, SQLContentStore, create_store
from contentforge.schema import ComponentLoader, SchemaError, SchemaReader, UnknownComponentError
from contentforge.schema.validator import validate_metadata_dir

logger = logging.getLogger(__name__)

# Global instances (initialized on startup)
store: SQLContentStore | None = None
schema_reader: SchemaReader | None = None
policies: PolicySet | None = None
engine_config: EngineConfig = EngineConfig()
auth_required: bool = True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    global store, schema_reader, policies, engine_config, auth_required

    base_path = resolve_base_path()
    metadata_path = resolve_metadata_path(base_path)

    # Validate metadata YAML files against JSON Schemas (warn on errors, don't block startup)
    schema_issues = validate_metadata_dir(metadata_path)
    if schema_issues:
        for issue in schema_issues:
            if issue.severity == "error":
                logger.error("Metadata schema error: %s", issue)
            else:
                logger.warning("Metadata schema warning: %s", issue)
        logger.warning(
            "Metadata validation: %d issue(s). "
            "Run 'contentforge schema validate' for details.",
            len(schema_issues),
        )

    loader = ComponentLoader(metadata_path)
    loader.load_all()
    schema_reader = SchemaReader(loader)
    policies = PolicySet.load(metadata_path / "policies.yaml")
    engine_config = EngineConfig.from_env()
    auth_required = os.environ.get("CONTENTFORGE_DISABLE_AUTH", "").lower() not in (
        "1",
        "true",
        "yes",
    )

    store = create_store(DatabaseConfig.from_env(base_path))
    logger.info(
        "ContentForge started: %d component(s), %d policy(ies), auth %s",
        len(loader.list_components()),
        len(policies.policies),
        "enabled" if auth_required else "disabled",
    )

    yield

    # Cleanup
    if store:
        store.close()


app = FastAPI(title="ContentForge API", lifespan=lifespan)

# CORS for the admin client dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:4200"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GatewayIdentityMiddleware)


# --- Error mapping ---


def _error(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"message": message, "status": status, "code": code},
    )


_STATUS_CODES = {
    401: "UNAUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    422: "INVALID_REQUEST",
}


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, _STATUS_CODES.get(exc.status_code, "ERROR"), str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [
        f"{'.'.join(str(p) for p in error['loc'])}: {error['msg']}" for error in exc.errors()
    ]
    return _error(422, "INVALID_REQUEST", "; ".join(messages))


@app.exception_handler(MaterializationError)
async def materialization_error_handler(request: Request, exc: MaterializationError):
    logger.error("Materialization failed for %s: %s", request.url.path, exc)
    if isinstance(exc, MalformedReferenceError):
        return _error(422, "MALFORMED_REFERENCE", str(exc))
    if isinstance(exc, DuplicateFieldError):
        return _error(422, "DUPLICATE_FIELD", str(exc))
    if isinstance(exc, UnknownDataTypeError):
        return _error(500, "UNKNOWN_DATA_TYPE", str(exc))
    return _error(500, "MATERIALIZATION_FAILED", str(exc))


@app.exception_handler(SchemaError)
async def schema_error_handler(request: Request, exc: SchemaError):
    if isinstance(exc, UnknownComponentError) and exc.referenced_by is None:
        return _error(404, "COMPONENT_NOT_FOUND", str(exc))
    logger.error("Schema read failed for %s: %s", request.url.path, exc)
    return _error(500, "SCHEMA_INVALID", str(exc))


def _check(request: Request, site_id: uuid.UUID | None, resource: str, action: str) -> None:
    """Raise 401/403 unless the caller may perform action on resource."""
    user_context = get_user_context(request)
    allowed, error_msg = ensure_permission(
        policies or PolicySet(),
        user_context,
        site_id,
        resource,
        action,
        auth_required=auth_required,
    )
    if not allowed:
        raise HTTPException(401 if user_context is None else 403, error_msg)


def _store() -> SQLContentStore:
    if not store:
        raise HTTPException(500, "Not initialized")
    return store


# --- Content Endpoints ---


@app.get("/api/v1/sites/{site_id}/content")
async def list_content(
    site_id: uuid.UUID,
    http_request: Request,
    page: int = Query(1, ge=1),
    pagesize: int = Query(20, ge=1, le=100),
    translation_id: uuid.UUID | None = Query(None, alias="translationId"),
) -> dict[str, Any]:
    """List content of a site (without field values)."""
    _check(http_request, site_id, "urn:dcm:content:*", "sites::content:read")

    items, total = _store().list_content(site_id, page, pagesize, translation_id)
    return content_list(items, Page(number=page, size=pagesize, total_elements=total), site_id)


@app.get("/api/v1/sites/{site_id}/content/{content_id}")
async def get_content(
    site_id: uuid.UUID,
    content_id: uuid.UUID,
    http_request: Request,
    populate: bool = False,
) -> dict[str, Any]:
    """Get one content entity with its materialized fields."""
    _check(http_request, site_id, f"urn:dcm:content:{content_id}", "sites::content:read")

    db = _store()
    found = db.get_content(site_id, content_id)
    if not found:
        raise HTTPException(404, "Content not found")
    content, revision, language = found

    rows = db.load_field_closure(
        revision.id,
        revision.translation_id,
        populate,
        max_depth=engine_config.max_reference_depth,
    )
    return content_with_fields(content, revision, rows, language, populate, engine_config)


@app.get("/api/v1/sites/{site_id}/content/{translation_id}/default-values")
async def get_default_values(
    site_id: uuid.UUID,
    translation_id: uuid.UUID,
    http_request: Request,
    populate: bool = False,
) -> dict[str, Any]:
    """Field values shared by all languages of a translation (new language variants)."""
    _check(http_request, site_id, "urn:dcm:content:*", "sites::content:read")

    rows = _store().load_field_closure(
        None,
        translation_id,
        populate,
        max_depth=engine_config.max_reference_depth,
    )
    return default_values(None, translation_id, rows, populate, engine_config)


def _public_item(
    db: SQLContentStore,
    site_id: uuid.UUID,
    found: tuple[ContentEntity, ContentRevision, Language],
    populate: bool,
) -> tuple:
    """Everything a public document needs: the entity, its rows and published variants."""
    content, revision, language = found
    translations = [
        (other, other_language)
        for other, other_language in db.list_translations(site_id, content.translation_id)
        if other.id != content.id and other.published
    ]
    rows = db.load_field_closure(
        revision.id,
        revision.translation_id,
        populate,
        max_depth=engine_config.max_reference_depth,
    )
    return content, revision, rows, language, translations


@app.get("/api/v1/public/sites/{site_id}/content")
async def list_public_content(
    site_id: uuid.UUID,
    page: int = Query(1, ge=1),
    pagesize: int = Query(20, ge=1, le=100),
    populate: bool = False,
) -> dict[str, Any]:
    """Page of published content with fields for delivery clients; no authentication."""
    db = _store()
    entities, total = db.list_content(site_id, page, pagesize, published_only=True)
    items = []
    for content, _ in entities:
        found = db.get_content(site_id, content.id)
        if found:
            items.append(_public_item(db, site_id, found, populate))
    return public_content_list(
        items,
        Page(number=page, size=pagesize, total_elements=total),
        site_id,
        populate,
        engine_config,
    )


@app.get("/api/v1/public/sites/{site_id}/content/{content_id}")
async def get_public_content(
    site_id: uuid.UUID,
    content_id: uuid.UUID,
    populate: bool = False,
) -> dict[str, Any]:
    """Published content for delivery clients; no authentication."""
    db = _store()
    found = db.get_content(site_id, content_id)
    if not found or not found[0].published:
        raise HTTPException(404, "Content not found")
    return public_content(*_public_item(db, site_id, found, populate), populate, engine_config)


class PreviewRequest(BaseModel):
    """Request body for previewing unsaved field rows."""
    rows: list[dict[str, Any]]
    translationId: uuid.UUID
    contentId: uuid.UUID | None = None
    parentId: uuid.UUID | None = None
    populate: bool = False


@app.post("/api/v1/sites/{site_id}/content/preview")
async def preview_content(
    site_id: uuid.UUID, request: PreviewRequest, http_request: Request
) -> dict[str, Any]:
    """Materialize field rows sent by the editor without storing them."""
    _check(http_request, site_id, "urn:dcm:content:*", "sites::content:read")

    try:
        rows = [FieldRow.from_dict(item) for item in request.rows]
    except (KeyError, TypeError, ValueError, UnknownDataTypeError) as e:
        raise HTTPException(422, f"Invalid field row: {e}")

    return {
        "fields": materialize(
            request.contentId,
            request.translationId,
            request.parentId,
            rows,
            request.populate,
            **engine_config.options(),
        )
    }


# --- Schema Endpoints ---


@app.get("/api/v1/content-components")
async def list_content_components(http_request: Request) -> dict[str, Any]:
    """List all content components."""
    _check(http_request, None, "urn:dcm:content-components:*", "content-components:read")
    if not schema_reader:
        raise HTTPException(500, "Schema reader not initialized")
    return {"_embedded": {"contentComponents": schema_reader.list_components()}}


@app.get("/api/v1/content-components/{component}")
async def get_content_component(component: str, http_request: Request) -> dict[str, Any]:
    """Get a content component (by id or slug) with its expanded field tree."""
    _check(
        http_request,
        None,
        f"urn:dcm:content-components:{component}",
        "content-components:read",
    )
    if not schema_reader:
        raise HTTPException(500, "Schema reader not initialized")
    return schema_reader.read(component)
