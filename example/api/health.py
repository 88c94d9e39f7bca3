import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import text
from sqlalchemy.orm import Session

from openapi_enrich import ConfigurationError
from example.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request, db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    # a bad rule declaration only surfaces when the document is first built
    try:
        request.app.openapi()
    except ConfigurationError as exc:
        logger.error("OpenAPI document cannot be built: %s", exc)
        raise HTTPException(status_code=503, detail=f"OpenAPI document cannot be built: {exc}")
    return {"status": "ok", "database": "ok", "openapi": "ok"}
