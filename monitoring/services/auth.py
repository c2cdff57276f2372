"""
Credential checks and token issuance.

Login failures never reveal whether the email exists: both the unknown
account and the wrong password paths run the password hasher once and
raise the same ``Unauthorized`` message.
"""
from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import make_password
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from monitoring.authentication import require_jwt_secret
from monitoring.exceptions import BadRequest, Conflict, Unauthorized
from monitoring.services.audit import log_action

User = get_user_model()
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid credentials'


def issue_tokens(user) -> dict:
    require_jwt_secret()
    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.role
    return {
        'accessToken': str(refresh.access_token),
        'refreshToken': str(refresh),
    }


def login(email: str, password: str, *, ip: str | None = None) -> dict:
    email = (email or '').strip()
    user = User.objects.filter(email__iexact=email).first()
    if user is None:
        # Spend the same hashing time as a real comparison.
        make_password(password)
        logger.info('login failed: unknown account')
        log_action(user=None, action='login', object_type='user', detail={'result': 'fail', 'ip': ip})
        raise Unauthorized(INVALID_CREDENTIALS)

    if not user.is_active or not user.check_password(password):
        logger.info('login failed for user %s', user.pk)
        log_action(user=user, action='login', object_type='user', object_id=user.pk,
                   detail={'result': 'fail', 'ip': ip})
        raise Unauthorized(INVALID_CREDENTIALS)

    tokens = issue_tokens(user)
    log_action(user=user, action='login', object_type='user', object_id=user.pk,
               detail={'result': 'ok', 'ip': ip})
    return tokens


def refresh_access(raw_refresh: str) -> dict:
    """Exchange a refresh token for a new access token with the current role."""
    require_jwt_secret()
    try:
        refresh = RefreshToken(raw_refresh)
    except TokenError as exc:
        raise Unauthorized('Invalid or expired refresh token.') from exc

    user = User.objects.filter(pk=refresh.get('userId'), is_active=True).first()
    if user is None:
        raise Unauthorized('Invalid or expired refresh token.')

    access = refresh.access_token
    access['role'] = user.role
    return {'accessToken': str(access)}


def logout(user, raw_refresh: str | None = None) -> int:
    """Blacklist one refresh token, or every outstanding token of ``user``."""
    if raw_refresh:
        try:
            token = RefreshToken(raw_refresh)
        except TokenError as exc:
            raise BadRequest('Invalid refresh token.') from exc
        if str(token.get('userId')) != str(user.id):
            raise BadRequest('Refresh token does not belong to this account.')
        token.blacklist()
        count = 1
    else:
        count = 0
        for outstanding in OutstandingToken.objects.filter(user_id=user.id):
            _, created = BlacklistedToken.objects.get_or_create(token=outstanding)
            count += int(created)
    log_action(user=user, action='logout', object_type='user', object_id=user.id, detail={'blacklisted': count})
    return count


def check_password_policy(password: str, user=None) -> None:
    try:
        validate_password(password, user=user)
    except ValidationError as exc:
        raise BadRequest(' '.join(exc.messages), cause={'password': exc.messages}) from exc


def _ensure_unique(*, email: str | None = None, username: str | None = None, exclude_pk=None) -> None:
    qs = User.objects.all()
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if email and qs.filter(email__iexact=email).exists():
        raise Conflict('An account with that email already exists.')
    if username and qs.filter(username__iexact=username).exists():
        raise Conflict('An account with that username already exists.')


def register(*, email: str, username: str, password: str):
    """Create a regular staff account; the role is never taken from input."""
    _ensure_unique(email=email, username=username)
    check_password_policy(password)
    user = User.objects.create_user(username=username, email=email.lower(), password=password,
                                    role=User.ROLE_USER)
    log_action(user=user, action='register', object_type='user', object_id=user.pk)
    return user


def update_account(user, *, email: str | None = None, username: str | None = None):
    if email is None and username is None:
        raise BadRequest('No update data provided.')
    _ensure_unique(email=email, username=username, exclude_pk=user.pk)
    fields = ['updated_at']
    if email is not None:
        user.email = email
        fields.append('email')
    if username is not None:
        user.username = username
        fields.append('username')
    user.save(update_fields=fields)
    return user


def change_password(principal, current_password: str, new_password: str) -> None:
    user = User.objects.filter(pk=principal.id, is_active=True).first()
    if user is None or not user.check_password(current_password):
        raise Unauthorized('Current password is incorrect.')
    check_password_policy(new_password, user=user)
    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    log_action(user=user, action='change_password', object_type='user', object_id=user.pk)
