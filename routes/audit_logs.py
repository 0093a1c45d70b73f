import json

from flask import Blueprint, jsonify, request
from models.audit_log import AuditLog

audit_bp = Blueprint("audit", __name__)


# booking history trail: who changed which slot/booking and when
@audit_bp.get("/audit-logs")
def list_audit_logs():
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 500))

    action = request.args.get("action")
    court_id = request.args.get("court_id", type=int)
    entity = request.args.get("entity")
    entity_id = request.args.get("entity_id")

    q = AuditLog.query
    if action:
        q = q.filter(AuditLog.action == action)
    if court_id is not None:
        q = q.filter(AuditLog.court_id == court_id)
    if entity:
        q = q.filter(AuditLog.entity == entity)
        if entity_id:
            q = q.filter(AuditLog.entity_id == str(entity_id))

    rows = q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()

    return jsonify([
        {
            "id": r.id,
            "created_at": r.timestamp.isoformat(),
            "action": r.action,
            "entity": r.entity,
            "entity_id": r.entity_id,
            "court_id": r.court_id,
            "ip": r.ip,
            "metadata": json.loads(r.metadata_json) if r.metadata_json else None,
        }
        for r in rows
    ]), 200
