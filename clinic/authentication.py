"""
Token authentication for the clinic API.

Kept in its own module so REST framework can import it from settings
without pulling in views.  Requests may alternatively carry a SimpleJWT
``Bearer`` access token; both classes are listed in settings.
"""
from __future__ import annotations

from rest_framework import authentication, exceptions


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>`` that also refuses deactivated staff.

    A staff record can be deactivated while its login still exists; such
    accounts must not reach the API.
    """

    keyword = 'Token'

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)
        staff = getattr(user, 'staff_profile', None)
        if staff is not None and not staff.active:
            raise exceptions.AuthenticationFailed('Staff account is deactivated.')
        return user, token
