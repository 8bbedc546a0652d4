"""
Authentication views: sign-in, sign-up, session, token refresh and logout.

Sign-in accepts an email or username.  Every successful sign-in, sign-up
and session fetch also runs the first-superadmin bootstrap, so the very
first account created on a fresh install becomes superadmin.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from clinic.serializers.auth import LoginSerializer, SignupSerializer
from clinic.services import access
from clinic.services.audit import log_action
from clinic.services.navigation import menu_for

User = get_user_model()
logger = logging.getLogger(__name__)


def _bootstrap(user) -> None:
    # failures never block the sign-in
    try:
        access.ensure_first_superadmin(user)
    except Exception:
        logger.warning('first-superadmin bootstrap failed user=%s', user.pk, exc_info=True)


def session_payload(user) -> dict:
    staff = getattr(user, 'staff_profile', None)
    return {
        'user': {
            'id': user.pk,
            'username': user.username,
            'email': user.email,
            'full_name': user.full_name or user.get_full_name() or user.username,
            'avatar_url': user.avatar_url or None,
            'staff_id': staff.pk if staff else None,
        },
        'roles': sorted(access.get_user_roles(user)),
        'is_admin': access.is_admin(user),
        'permissions': access.permission_matrix(user),
        'menu': menu_for(user),
    }


def _tokens(user) -> dict:
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return {
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """Sign in with email (or username) and password."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    password = s.validated_data['password']

    if '@' in username:
        match = User.objects.filter(email__iexact=username).only('username').first()
        if match:
            username = match.username
    user = authenticate(request, username=username, password=password)
    ip = request.META.get('REMOTE_ADDR')
    if not user:
        log_action(user=None, action='login', table_name='users', new_data={'result': 'fail', 'username': username, 'ip': ip})
        return Response({'ok': False, 'error': {'code': 'invalid_credentials', 'message': 'Invalid email or password'}},
                        status=400)
    staff = getattr(user, 'staff_profile', None)
    if staff is not None and not staff.active:
        return Response({'ok': False, 'error': {'code': 'inactive', 'message': 'Staff account is deactivated'}},
                        status=403)

    log_action(user=user, action='login', table_name='users', record_id=user.pk, new_data={'result': 'ok', 'ip': ip})
    _bootstrap(user)
    return Response({'ok': True, **_tokens(user), **session_payload(user)}, status=200)

login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def signup_view(request):
    s = SignupSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    if User.objects.filter(username__iexact=v['email']).exists() or User.objects.filter(email__iexact=v['email']).exists():
        return Response({'ok': False, 'error': {'code': 'exists', 'message': 'An account with this email already exists'}},
                        status=400)
    with transaction.atomic():
        user = User.objects.create_user(username=v['email'], email=v['email'], password=v['password'],
                                        full_name=v['full_name'])
        log_action(user=user, action='signup', table_name='users', record_id=user.pk)
    _bootstrap(user)
    return Response({'ok': True, **_tokens(user), **session_payload(user)}, status=201)

signup_view.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session_view(request):
    """Current user, roles, permission matrix and visible menu."""
    _bootstrap(request.user)
    return Response({'ok': True, **session_payload(request.user)})


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    if isinstance(resp, Response):
        data = dict(resp.data)
        if 'access' in data and 'jwt_access' not in data:
            data['jwt_access'] = data.pop('access')
        if 'refresh' in data:
            data['jwt_refresh'] = data.pop('refresh')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Sign out: drop the legacy token and blacklist refresh tokens (one or all)."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError:
            return Response({'ok': False, 'error': {'code': 'invalid_token', 'message': 'Invalid refresh token'}},
                            status=400)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    log_action(user=request.user, action='logout', table_name='users', record_id=request.user.pk)
    return Response({'ok': True, 'blacklisted': count})
