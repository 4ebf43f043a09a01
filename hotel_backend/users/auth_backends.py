"""
PATH: users/auth_backends.py

AUTH BACKEND: Email OR Username login

- identifier containing "@" is looked up as email, otherwise as username
- supplying both email= and username= explicitly fails authentication
- inactive users, and staff attached to an inactive hotel, cannot log in
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import BaseBackend

User = get_user_model()


class EmailOrUsernameBackend(BaseBackend):
    def authenticate(self, request, username=None, password=None, **kwargs):
        email_kw = (kwargs.get("email") or "").strip()
        username_kw = (kwargs.get("username") or "").strip()

        if email_kw and username_kw:
            return None

        identifier = (username or email_kw or username_kw or "").strip()
        if not identifier or password is None:
            return None

        lookup = {"email__iexact": identifier} if "@" in identifier else {"username__iexact": identifier}

        user = User.objects.select_related("hotel").filter(**lookup).first()
        if user is None or not self.user_can_authenticate(user):
            return None

        if user.check_password(password):
            return user

        return None

    def user_can_authenticate(self, user) -> bool:
        if not user.is_active:
            return False
        hotel = getattr(user, "hotel", None)
        return hotel is None or hotel.is_active

    def get_user(self, user_id):
        user = User.objects.filter(pk=user_id).first()
        if user is None or not self.user_can_authenticate(user):
            return None
        return user
