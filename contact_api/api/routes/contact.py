from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from contact_api.adapters.rate_limit.base import AbstractRateLimiter
from contact_api.core.errors import ValidationAppError
from contact_api.core.rate_limit import enforce_rate_limit, get_rate_limiter
from contact_api.schemas.contact import ContactForm, ContactResponse
from contact_api.services.contact_service import ContactService

router = APIRouter(tags=["Contact"])


def get_contact_service(request: Request) -> ContactService:
    """FastAPI dependency returning the application's contact service."""
    return request.app.state.contact_service


async def _read_payload(request: Request) -> Any:
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("application/json"):
        try:
            return await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValidationAppError(
                code="invalid_submission",
                message="Request body is not valid JSON",
            ) from exc

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


async def bind_contact_form(request: Request) -> ContactForm:
    """Bind the submission from a JSON or form-encoded body.

    Raises:
        ValidationAppError: If the body is malformed or a field is missing/invalid.
    """
    payload = await _read_payload(request)
    if not isinstance(payload, dict):
        raise ValidationAppError(
            code="invalid_submission",
            message="Request body must be an object with name, email and message",
        )

    try:
        return ContactForm.model_validate(payload)
    except ValidationError as exc:
        fields = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "error": error["msg"],
            }
            for error in exc.errors()
        ]
        raise ValidationAppError(
            code="invalid_submission",
            message="Submission is missing required fields or contains invalid values",
            details={"fields": fields},
        ) from exc


@router.post(
    "/contact",
    response_model=ContactResponse,
    responses={
        400: {"description": "Malformed or incomplete submission"},
        429: {"description": "Rate limit exceeded for the calling address"},
        500: {"description": "The email could not be delivered"},
    },
)
async def submit_contact(
    request: Request,
    form: Annotated[ContactForm, Depends(bind_contact_form)],
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactResponse:
    """Relay a contact form submission as an email.

    The submission is validated first, then the caller's address is checked
    against the rate limiter, and only admitted submissions reach the relay.
    A quota slot stays consumed even when delivery fails.

    Raises:
        ValidationAppError: 400 for malformed submissions.
        RateLimitAppError: 429 when the caller is over quota.
        MailRelayAppError: 500 when the relay fails.
    """
    enforce_rate_limit(request, limiter)
    await service.submit(form)
    return ContactResponse()
