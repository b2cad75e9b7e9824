"""
Public contact form.

Accepts JSON or urlencoded bodies, checks fields and captcha, emails the
operator when mail is available, and stores the submission.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError

from legalsite.api.deps import get_contact_service
from legalsite.core.errors import MissingFieldError
from legalsite.core.session import ChallengeSession, get_challenge_session
from legalsite.schemas.contact import ContactRequest, ContactResponse, ErrorResponse
from legalsite.services.contact_service import ContactService

logger = logging.getLogger(__name__)

router = APIRouter()

SUCCESS_MESSAGE = "Contact form submitted successfully"


async def read_contact_payload(request: Request) -> ContactRequest:
    """Parse the body the way the site's form and fetch() calls send it."""
    content_type = request.headers.get("content-type", "")
    data: Dict[str, Any] = {}

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.info("Contact payload is not valid JSON")
            body = None
        if isinstance(body, dict):
            data = body
    elif content_type.startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        form = await request.form()
        data = {key: value for key, value in form.items() if isinstance(value, str)}

    try:
        return ContactRequest.model_validate(data)
    except ValidationError as exc:
        # non-text values are treated as absent fields
        raise MissingFieldError() from exc


@router.post(
    "/contact",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit the contact form",
    responses={
        400: {"model": ErrorResponse, "description": "Missing field, bad captcha or bad email"},
        500: {"model": ErrorResponse, "description": "Submission could not be stored"},
    },
)
async def submit_contact(
    request: Request,
    challenge: ChallengeSession = Depends(get_challenge_session),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    payload = await read_contact_payload(request)
    stored = await service.submit(payload, challenge)
    return ContactResponse(success=True, message=SUCCESS_MESSAGE, data=stored)
