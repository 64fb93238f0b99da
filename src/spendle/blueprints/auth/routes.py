"""Authentication routes."""

from __future__ import annotations

from flask import jsonify

from ...errors import AuthError, SpendleError
from ...extensions import get_context, get_marker_store
from ...logging_config import get_logger
from ...services import auth as auth_service
from ...services.materialize import RecurringProcessor
from ..common import current_identity, request_data
from . import bp

logger = get_logger("blueprints.auth")


@bp.post("/register")
def register():
    data = request_data()
    user = auth_service.create_user(
        username=str(data.get("username") or ""),
        password=str(data.get("password") or ""),
        session_factory=get_context().session_factory,
    )
    return jsonify({"user": auth_service.user_to_dict(user)}), 201


@bp.post("/login")
def login():
    """Sign in, then run the monthly recurring import if it is due.

    A failed import does not fail the login; the marker stays unset so the
    next login retries.
    """

    data = request_data()
    ctx = get_context()
    user = auth_service.authenticate(
        username=str(data.get("username") or ""),
        password=str(data.get("password") or ""),
        session_factory=ctx.session_factory,
    )
    if user is None:
        raise AuthError("Invalid username or password")

    identity = current_identity()
    identity.sign_in(user.id)  # type: ignore[arg-type]

    payload: dict = {"user": auth_service.user_to_dict(user), "recurring": None}
    processor = RecurringProcessor(ctx, get_marker_store())
    try:
        result = processor.run_if_due(identity)
    except SpendleError as exc:
        logger.error(
            "Automatic recurring import failed",
            extra={"user_id": user.id, "error": exc.code},
            exc_info=True,
        )
        payload["recurring_error"] = exc.to_dict()
    else:
        payload["recurring"] = result.to_dict() if result else None
    return jsonify(payload)


@bp.post("/logout")
def logout():
    current_identity().sign_out()
    return jsonify({"status": "signed_out"})


@bp.get("/me")
def me():
    identity = current_identity()
    user = auth_service.get_user(identity.require_user_id(), get_context().session_factory)
    return jsonify({"user": auth_service.user_to_dict(user)})
