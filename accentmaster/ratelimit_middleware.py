"""Turns django-ratelimit rejections into JSON responses for the API client."""

import logging
from typing import Optional

from django.http import HttpRequest, JsonResponse
from django.utils.deprecation import MiddlewareMixin
from django_ratelimit.exceptions import Ratelimited

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


class RateLimitMiddleware(MiddlewareMixin):
    """Answers ``Ratelimited`` from the Gemini-backed views with a 429."""

    def process_exception(
        self, request: HttpRequest, exception: Exception
    ) -> Optional[JsonResponse]:
        if not isinstance(exception, Ratelimited):
            return None
        logger.warning("Rate limit hit on %s", request.path)
        response = JsonResponse(
            {'message': 'Too many requests. Please wait a moment and try again.'},
            status=429,
        )
        response['Retry-After'] = str(RETRY_AFTER_SECONDS)
        return response
