from typing import Any

from fastapi import HTTPException, status

from openapi_enrich import Validator


def raise_if_invalid(validator: Validator, payload: Any) -> None:
    failures = validator.validate(payload)
    if failures:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Validation failed",
                "errors": [f.model_dump() for f in failures],
            },
        )
