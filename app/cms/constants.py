"""
Central constants for the complaint management application.
"""
from __future__ import annotations

ROLE_SUPERADMIN = "superadmin"
ROLE_ADMIN = "admin"
ROLE_AGENT = "agent"
ROLE_USER = "user"

ROLES = frozenset({ROLE_SUPERADMIN, ROLE_ADMIN, ROLE_AGENT, ROLE_USER})
ADMIN_ROLES = frozenset({ROLE_SUPERADMIN, ROLE_ADMIN})
STAFF_ROLES = frozenset({ROLE_SUPERADMIN, ROLE_ADMIN, ROLE_AGENT})

STATUS_OPEN = "Open"
STATUS_IN_PROGRESS = "In Progress"
STATUS_ESCALATED = "Escalated"
STATUS_RESOLVED = "Resolved"
STATUS_CLOSED = "Closed"
STATUS_REJECTED = "Rejected"

COMPLAINT_STATUSES = (
    STATUS_OPEN,
    STATUS_IN_PROGRESS,
    STATUS_ESCALATED,
    STATUS_RESOLVED,
    STATUS_CLOSED,
    STATUS_REJECTED,
)

# Feedback is only accepted once a complaint reaches one of these.
FEEDBACK_ELIGIBLE_STATUSES = frozenset({STATUS_RESOLVED, STATUS_CLOSED})

PRIORITIES = ("Low", "Medium", "High", "Critical")

# Route prefixes, in mount order. Complaint types must precede complaints.
API_PREFIXES = (
    ("organizations", "/api/organizations"),
    ("auth", "/api/auth"),
    ("users", "/api/users"),
    ("departments", "/api/departments"),
    ("complaint_types", "/api/complaints/types"),
    ("complaints", "/api/complaints"),
    ("workflows", "/api/workflows"),
    ("notifications", "/api/notifications"),
    ("feedback", "/api/feedback"),
)

UPLOADS_PREFIX = "/uploads"

OTP_LENGTH = 6
OTP_TTL_MINUTES = 10
