"""Session token issuance."""
from rest_framework_simplejwt.tokens import AccessToken

from .models import User
from .serializers import AuthUserSerializer


def issue_token(user: User) -> str:
    """Return a signed bearer token identifying ``user``."""
    token = AccessToken.for_user(user)
    token['role'] = user.role
    return str(token)


def auth_payload(user: User) -> dict:
    return {'token': issue_token(user), 'user': AuthUserSerializer(user).data}
