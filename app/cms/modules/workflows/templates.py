"""
Built-in workflow templates, imported by `POST /api/workflows/import-templates`
when no templates are supplied and by scripts/init_db.py.
"""
from __future__ import annotations

DEFAULT_TEMPLATES: list[dict] = [
    {
        "name": "Standard Resolution",
        "category": "General",
        "description": "Triage, investigate, resolve and confirm with the complainant.",
        "stages": [
            {"name": "Received", "assigneeRole": "agent", "slaHours": 24},
            {"name": "Investigation", "assigneeRole": "agent", "slaHours": 72},
            {"name": "Resolution", "assigneeRole": "agent", "slaHours": 48},
            {"name": "Closed", "assigneeRole": "admin", "slaHours": None},
        ],
    },
    {
        "name": "Facility Maintenance",
        "category": "Infrastructure",
        "description": "Site inspection followed by a scheduled repair.",
        "stages": [
            {"name": "Reported", "assigneeRole": "agent", "slaHours": 12},
            {"name": "Site Inspection", "assigneeRole": "agent", "slaHours": 48},
            {"name": "Repair Scheduled", "assigneeRole": "agent", "slaHours": 72},
            {"name": "Repair Completed", "assigneeRole": "agent", "slaHours": None},
        ],
    },
    {
        "name": "Billing Dispute",
        "category": "Finance",
        "description": "Verify the charge, review with finance, issue an adjustment.",
        "stages": [
            {"name": "Received", "assigneeRole": "agent", "slaHours": 24},
            {"name": "Verification", "assigneeRole": "agent", "slaHours": 48},
            {"name": "Finance Review", "assigneeRole": "admin", "slaHours": 72},
            {"name": "Adjustment Issued", "assigneeRole": "admin", "slaHours": None},
        ],
    },
    {
        "name": "Service Quality",
        "category": "Customer Service",
        "description": "Acknowledge, review with the team lead, follow up.",
        "stages": [
            {"name": "Acknowledged", "assigneeRole": "agent", "slaHours": 8},
            {"name": "Team Lead Review", "assigneeRole": "admin", "slaHours": 48},
            {"name": "Follow-up", "assigneeRole": "agent", "slaHours": None},
        ],
    },
]
