import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from legalsite.core.session import ChallengeSession, get_challenge_session
from legalsite.services.captcha_service import (
    SVG_MEDIA_TYPE,
    CaptchaService,
    get_captcha_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/captcha",
    response_class=Response,
    summary="Issue a captcha challenge",
    description="Returns an SVG puzzle and stores its answer in the caller's session, "
    "replacing any earlier challenge.",
    responses={200: {"content": {SVG_MEDIA_TYPE: {}}}},
)
async def get_captcha(
    challenge_session: ChallengeSession = Depends(get_challenge_session),
    captcha: CaptchaService = Depends(get_captcha_service),
) -> Response:
    challenge = captcha.issue()
    challenge_session.set_secret(challenge.secret)
    logger.debug("Captcha issued")
    return Response(content=challenge.image, media_type=SVG_MEDIA_TYPE)
