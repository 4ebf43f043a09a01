from rest_framework import serializers
from django.contrib.auth import get_user_model

from permissions.roles import effective_capabilities_for

User = get_user_model()


# ---------------- LOGIN (INPUT ONLY) ----------------
class LoginSerializer(serializers.Serializer):
    """
    Input validation only.
    Authentication is handled in the view.
    """
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )


# ---------------- USER OUTPUT ----------------
class UserSerializer(serializers.ModelSerializer):
    """
    Safe staff representation, including the hotel scope and
    the capabilities the billing UI should enable.
    """
    hotel_id = serializers.UUIDField(read_only=True, allow_null=True)
    capabilities = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "role",
            "hotel_id",
            "capabilities",
        ]

    def get_capabilities(self, obj) -> list[str]:
        request = self.context.get("request")
        return sorted(effective_capabilities_for(request, obj))
