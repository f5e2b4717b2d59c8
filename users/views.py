"""Users app API views.

Endpoints include:
- profile: the current authenticated user with resolved seller context.
- signin / refresh / verify: JWT issue and maintenance.
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView, TokenVerifyView

from .logging import log_auth_event
from .serializers import EmailOrPhoneTokenObtainPairSerializer, UserMeSerializer


@extend_schema(
    operation_id="users_current_user",
    summary="Get current user profile",
    description=(
        "Returns the current authenticated user's profile.\n\n"
        "Auth: Requires JWT (Authorization: Bearer <token>) or session auth.\n\n"
        "Includes `actual_seller_id`: the super seller whose warehouses this account operates on."
    ),
    tags=["User Endpoints"],
    responses={
        200: OpenApiResponse(description="User profile", response=UserMeSerializer),
        401: OpenApiResponse(description="Unauthorized"),
    },
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
@throttle_classes([ScopedRateThrottle])
def current_user(request):
    """Return the authenticated user's profile and seller context."""
    log_auth_event("profile", request, user=request.user)
    serializer = UserMeSerializer(request.user)
    return Response(serializer.data)


current_user.throttle_scope = "profile"


class AuthEventMixin:
    """Log every token request as an auth event, tagged with the view's action."""

    auth_action = ""

    def post(self, request, *args, **kwargs):
        resp = super().post(request, *args, **kwargs)
        log_auth_event(self.auth_action, request, status="success" if resp.status_code == 200 else "failed")
        return resp

    def handle_exception(self, exc):
        # Failed validation never reaches post()'s return
        log_auth_event(self.auth_action, self.request, status="failed", extra={"error": type(exc).__name__})
        return super().handle_exception(exc)


@extend_schema(tags=["User Endpoints"], summary="Sign in with email or phone")
class SignInView(AuthEventMixin, TokenObtainPairView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signin"
    serializer_class = EmailOrPhoneTokenObtainPairSerializer
    auth_action = "signin"


@extend_schema(tags=["User Endpoints"], summary="Refresh access token")
class RefreshView(AuthEventMixin, TokenRefreshView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "token_refresh"
    auth_action = "token_refresh"


@extend_schema(tags=["User Endpoints"], summary="Verify token")
class VerifyView(AuthEventMixin, TokenVerifyView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "token_verify"
    auth_action = "token_verify"
