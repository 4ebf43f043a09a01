from django.contrib.auth import authenticate
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from users.serializers import LoginSerializer, UserSerializer

# ---------------------------
# VIEWS
# ---------------------------


class LoginView(APIView):
    """
    Credential check for the staff UI.
    Tokens are issued by /api/auth/jwt/create/.
    """

    permission_classes = [AllowAny]
    serializer_class = LoginSerializer

    @extend_schema(
        request=LoginSerializer,
        responses={200: UserSerializer},
        description="Authenticate a staff user with email and password",
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request=request,
            email=serializer.validated_data["email"],
            password=serializer.validated_data["password"],
        )

        if not user:
            return Response(
                {"error": {"code": "INVALID_CREDENTIALS", "message": "Invalid credentials"}},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        return Response(UserSerializer(user, context={"request": request}).data)
