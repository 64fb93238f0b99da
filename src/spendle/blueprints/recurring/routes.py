"""Recurring template routes."""

from __future__ import annotations

from flask import jsonify, request

from ...extensions import get_context, get_marker_store
from ...services import recurring as recurring_service
from ...services.materialize import RecurringProcessor
from ..common import current_identity, parse_bool, request_data
from . import bp
from .forms import TemplateForm


@bp.get("/")
def list_templates():
    active = request.args.get("active")
    templates = recurring_service.list_templates(
        get_context(),
        current_identity(),
        active=None if active is None else parse_bool(active, field="active"),
    )
    return jsonify({"templates": [recurring_service.template_to_dict(t) for t in templates]})


@bp.post("/")
def create_template():
    draft = TemplateForm.from_mapping(request_data()).to_draft()
    template = recurring_service.create_template(get_context(), current_identity(), draft)
    return jsonify(recurring_service.template_to_dict(template)), 201


@bp.patch("/<int:template_id>")
def update_template(template_id: int):
    changes = TemplateForm.from_mapping(request_data()).changes()
    template = recurring_service.update_template(
        get_context(), current_identity(), template_id, **changes
    )
    return jsonify(recurring_service.template_to_dict(template))


@bp.delete("/<int:template_id>")
def delete_template(template_id: int):
    removed = recurring_service.delete_template(get_context(), current_identity(), template_id)
    return jsonify({"id": template_id, "deleted": removed, "deactivated": not removed})


@bp.post("/<int:template_id>/toggle")
def toggle_template(template_id: int):
    """Set ``active`` explicitly, or flip it when the body omits it."""

    ctx = get_context()
    identity = current_identity()
    data = request_data()
    if "active" in data:
        active = parse_bool(data["active"], field="active")
    else:
        active = not recurring_service.get_template(ctx, identity, template_id).active
    template = recurring_service.toggle_active(ctx, identity, template_id, active)
    return jsonify(recurring_service.template_to_dict(template))


@bp.post("/import")
def import_recurring():
    """Explicit import; runs regardless of the monthly marker."""

    ctx = get_context()
    result = RecurringProcessor(ctx, get_marker_store()).import_now(current_identity())
    return jsonify(result.to_dict())
