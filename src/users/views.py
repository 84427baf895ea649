import logging

from django.conf import settings
from django.contrib.auth import authenticate
from drf_spectacular.utils import extend_schema, OpenApiResponse
from rest_framework import status
from rest_framework.generics import CreateAPIView, RetrieveUpdateAPIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import (
    TokenObtainPairView as BaseTokenObtainPairView,
    TokenRefreshView as BaseTokenRefreshView,
)

from .middleware import set_auth_cookie
from .serializers import (
    CustomUserSerializer, RegistrationSerializer, LoginSerializer,
    SimpleDetailSerializer, RegisterResponseSerializer,
)

logger = logging.getLogger(__name__)


class ThrottledTokenObtainPairView(BaseTokenObtainPairView):
    throttle_classes = (ScopedRateThrottle,)
    throttle_scope = 'auth_login'


class ThrottledTokenRefreshView(BaseTokenRefreshView):
    throttle_classes = (ScopedRateThrottle,)
    throttle_scope = 'auth_login'


def _set_token_cookies(response, user):
    refresh = RefreshToken.for_user(user)
    set_auth_cookie(response, getattr(settings, 'AUTH_COOKIE_ACCESS', 'access_token'), refresh.access_token)
    set_auth_cookie(response, getattr(settings, 'AUTH_COOKIE_REFRESH', 'refresh_token'), refresh)
    return response


@extend_schema(
    summary="Register & set auth cookies",
    request=RegistrationSerializer,
    responses={
        201: OpenApiResponse(
            response=RegisterResponseSerializer,
            description="Account created; JWT tokens are set as httpOnly cookies."
        ),
        400: OpenApiResponse(description="Validation error")},
    tags=["auth"],
)
class RegisterView(CreateAPIView):
    serializer_class = RegistrationSerializer
    permission_classes = [AllowAny]
    throttle_classes = (ScopedRateThrottle,)
    throttle_scope = 'auth_register'

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Registered user id=%s", user.pk)

        data = {
            "detail": "Account created successfully.",
            "user": CustomUserSerializer(user).data,
        }
        return _set_token_cookies(Response(data, status=status.HTTP_201_CREATED), user)


@extend_schema(tags=["auth"])
class LoginView(APIView):
    permission_classes = [AllowAny]
    serializer_class = LoginSerializer
    throttle_classes = (ScopedRateThrottle,)
    throttle_scope = 'auth_login'

    @extend_schema(
        request=LoginSerializer,
        responses={
            200: OpenApiResponse(response=SimpleDetailSerializer, description="Login successful; cookies set"),
            401: OpenApiResponse(response=SimpleDetailSerializer, description="Invalid credentials"),
        },
        auth=[],
    )
    def post(self, request, *args, **kwargs):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = authenticate(
            request,
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password'],
        )
        if not user:
            return Response({"detail": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)

        return _set_token_cookies(Response({"detail": "Login successful"}, status=status.HTTP_200_OK), user)


@extend_schema(
    summary="Logout",
    request=None,
    responses={200: OpenApiResponse(response=SimpleDetailSerializer, description="Logged out")},
    tags=["auth"],
)
class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        response = Response({"detail": "Logout successful"}, status=status.HTTP_200_OK)
        response.delete_cookie(getattr(settings, 'AUTH_COOKIE_ACCESS', 'access_token'), path='/')
        response.delete_cookie(getattr(settings, 'AUTH_COOKIE_REFRESH', 'refresh_token'), path='/')
        return response


@extend_schema(tags=["auth"], summary="Current user profile")
class MeView(RetrieveUpdateAPIView):
    """The authenticated user's own profile, including the lab role."""
    serializer_class = CustomUserSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ['get', 'patch', 'head', 'options']

    def get_object(self):
        return self.request.user
