"""Audit trail of administrative changes."""

from fantabeach import models


def write_audit(session, actor, action, entity_type, entity_id, before=None, after=None):
    """Stage an audit entry on the session; the caller commits it with the change."""
    entry = models.AuditLog(
        actor_user_id=actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        timestamp=models.utcnow(),
        before=before,
        after=after,
    )
    session.add(entry)
    return entry


def list_audit_logs(session, entity_type=None, entity_id=None, limit=100):
    """Return the most recent audit entries, optionally for one entity."""
    query = session.query(models.AuditLog)
    if entity_type:
        query = query.filter(models.AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(models.AuditLog.entity_id == entity_id)
    return query.order_by(models.AuditLog.id.desc()).limit(limit).all()
