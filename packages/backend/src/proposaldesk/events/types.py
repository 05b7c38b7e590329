"""Event type constants.

Centralizing event types as constants prevents typos and makes it easy
to discover everything the audit log can contain.
"""

# ─── Project lifecycle ───────────────────────────────────

PROJECT_CREATED = "project.created"
PROJECT_STATUS_CHANGED = "project.status_changed"
PROJECT_FEEDBACK_UPDATED = "project.feedback_updated"
PROJECT_DELETED = "project.deleted"

# ─── User lifecycle ──────────────────────────────────────

USER_REGISTERED = "user.registered"
USER_UPDATED = "user.updated"
USER_ROLE_CHANGED = "user.role_changed"
USER_DELETED = "user.deleted"
