from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/")
def root(request: Request):
    """Where to find the enriched OpenAPI document and what it describes."""
    app = request.app
    document = app.openapi()
    schemas = document.get("components", {}).get("schemas", {})
    return {
        "name": app.title,
        "version": app.version,
        "openapi": app.openapi_url,
        "docs": app.docs_url,
        "operations": sum(len(item) for item in document.get("paths", {}).values()),
        "schemas": sorted(schemas),
    }
