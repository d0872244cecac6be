"""
Realtime feed for the admin panel.

Clients poll with the id of the last event they saw; events are written in
the same transaction as the change they describe.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify

from cafeqr_admin.decorators import tenant_admin_required
from cafeqr_admin.routes.params import query_int
from cafeqr_shared.db import get_session
from cafeqr_shared.serializers import serialize_realtime_event, success_response
from cafeqr_shared.supabase.realtime import EVENTS_POLL_LIMIT, RealtimeManager

events_bp = Blueprint("admin_events", __name__)


@events_bp.get("/<slug>/admin/events")
@tenant_admin_required
def get_events(slug: str, ctx):
    after_id = max(query_int("after", 0), 0)
    limit = min(max(query_int("limit", EVENTS_POLL_LIMIT), 1), EVENTS_POLL_LIMIT)
    with get_session() as session:
        events = RealtimeManager.get_events_since(session, ctx.tenant.id, after_id, limit)
        data = [serialize_realtime_event(event) for event in events]
    last_id = data[-1]["id"] if data else after_id
    return jsonify(success_response({"events": data, "last_id": last_id})), HTTPStatus.OK
