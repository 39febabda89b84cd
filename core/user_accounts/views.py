"""
API Views for authentication and the acting user's profile.

Identity provisioning and user administration live outside this service;
only login, token refresh and "who am I" are exposed here.
"""
import logging

from django.contrib.auth import authenticate
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.tokens import RefreshToken

from procure_project.response_formatter import success_response, error_response
from .serializers import LoginSerializer, UserProfileSerializer

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """
    Authenticate with email/password and return a JWT pair.

    POST /auth/login/
    - Request body: { "email": "...", "password": "..." }
    """
    serializer = LoginSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(
            message="Please provide both email and password",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )

    user = authenticate(
        request,
        username=serializer.validated_data['email'],
        password=serializer.validated_data['password']
    )
    if user is None:
        logger.warning(f"Failed login for {serializer.validated_data['email']}")
        return error_response(
            message="Invalid credentials",
            status_code=status.HTTP_401_UNAUTHORIZED
        )

    refresh = RefreshToken.for_user(user)
    return success_response(
        data={
            'user': UserProfileSerializer(user).data,
            'tokens': {
                'refresh': str(refresh),
                'access': str(refresh.access_token)
            }
        },
        message="Login successful"
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_profile(request):
    """
    GET /accounts/me/
    Returns the acting user with role and assigned sites.
    """
    return success_response(data=UserProfileSerializer(request.user).data)
