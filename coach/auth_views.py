"""
Authentication views for the accent coach.

Login is by email only: the first login for an address creates a Django user
(``username == email``) without a usable password.
"""

import json
import logging
from functools import wraps
from typing import Any, Callable, TypeVar

from django.contrib.auth import alogin, alogout
from django.contrib.auth.models import User
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import ensure_csrf_cookie

from .profile_manager import load_profile

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def api_login_required(view: F) -> F:
    """Reject anonymous requests with a JSON 401 instead of a redirect."""

    @wraps(view)
    async def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> Any:
        user = await request.auser()
        if not user.is_authenticated:
            return JsonResponse({'message': 'Unauthorized'}, status=401)
        return await view(request, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


async def login_view(request: HttpRequest) -> JsonResponse:
    """
    Start a session for the posted email.

    Returns:
        ``{success, profile}`` where ``profile`` is null until onboarding
        has saved one; 400 when no email is given
    """
    if request.method != 'POST':
        return JsonResponse({'message': 'Only POST requests are allowed'}, status=405)

    try:
        data = json.loads(request.body or b'{}')
    except (ValueError, UnicodeDecodeError):
        data = {}
    email = str(data.get('email') or '').strip() if isinstance(data, dict) else ''
    if not email:
        return JsonResponse({'message': 'Email required'}, status=400)

    user, created = await User.objects.aget_or_create(
        username=email, defaults={'email': email}
    )
    if created:
        user.set_unusable_password()
        await user.asave(update_fields=['password'])
        logger.info("Created account for %s", email)

    await alogin(request, user)
    profile = await load_profile(user)
    return JsonResponse(
        {'success': True, 'profile': profile.as_dict() if profile else None}
    )


@api_login_required
async def logout_view(request: HttpRequest) -> JsonResponse:
    if request.method != 'POST':
        return JsonResponse({'message': 'Only POST requests are allowed'}, status=405)
    await alogout(request)
    return JsonResponse({'success': True})


@ensure_csrf_cookie
async def me_view(request: HttpRequest) -> JsonResponse:
    """Current profile, ``{email}`` before onboarding, or null when logged out."""
    user = await request.auser()
    if not user.is_authenticated:
        return JsonResponse(None, safe=False)
    profile = await load_profile(user)
    if profile is None:
        return JsonResponse({'email': user.email or user.username})
    return JsonResponse(profile.as_dict())
