"""Structured auth event logging."""

import logging

logger = logging.getLogger("auth")


def log_auth_event(action: str, request, user=None, status: str = "success", extra: dict | None = None):
    """Emit an auth event with action, caller, seller role, ip, and status."""
    payload = {
        "action": action,
        "ip": request.META.get("REMOTE_ADDR"),
        "status": status,
    }
    if user is not None:
        payload["user_id"] = getattr(user, "id", None)
        payload["username"] = getattr(user, "username", None)
        payload["role"] = getattr(user, "role", None)
        payload["super_seller_id"] = getattr(user, "super_seller_id", None)
    if extra:
        payload.update(extra)
    logger.info(payload)
