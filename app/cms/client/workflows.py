from __future__ import annotations

from typing import Any

import requests

from app.cms.client.errors import ApiError, payload_of, payload_or_message, status_of
from app.cms.client.http import ApiClient


@payload_or_message
def create_workflow(api: ApiClient, workflow: dict) -> Any:
    return api.post("/workflows", workflow)


@payload_or_message
def get_workflows(api: ApiClient) -> Any:
    return api.get("/workflows")


@payload_or_message
def get_workflow_by_id(api: ApiClient, workflow_id: int) -> Any:
    return api.get(f"/workflows/{workflow_id}")


@payload_or_message
def get_workflows_by_department(api: ApiClient, department_id: int) -> Any:
    return api.get(f"/workflows/department/{department_id}")


@payload_or_message
def get_workflows_by_complaint_type(api: ApiClient, complaint_type_id: int) -> Any:
    return api.get(f"/workflows/complaint-type/{complaint_type_id}")


def get_workflow_for_complaint(api: ApiClient, complaint_id: int) -> Any:
    """The complaint's workflow progress, or None when no workflow is attached."""
    try:
        return api.get(f"/workflows/complaint/{complaint_id}")
    except requests.RequestException as e:
        if status_of(e) == 404:
            return None
        raise ApiError(payload_of(e) or str(e), status_of(e)) from e


@payload_or_message
def update_workflow_stage(api: ApiClient, complaint_id: int, stage: dict) -> Any:
    return api.put(f"/workflows/complaint/{complaint_id}/stage", stage)


@payload_or_message
def update_workflow(api: ApiClient, workflow_id: int, workflow: dict) -> Any:
    return api.put(f"/workflows/{workflow_id}", workflow)


@payload_or_message
def delete_workflow(api: ApiClient, workflow_id: int) -> Any:
    return api.delete(f"/workflows/{workflow_id}")


@payload_or_message
def get_workflow_templates(api: ApiClient) -> Any:
    return api.get("/workflows/templates")


@payload_or_message
def get_workflow_templates_by_category(api: ApiClient, category: str) -> Any:
    return api.get(f"/workflows/templates/category/{category}")


@payload_or_message
def get_workflow_template_by_id(api: ApiClient, template_id: int) -> Any:
    return api.get(f"/workflows/templates/{template_id}")


@payload_or_message
def create_workflow_from_template(api: ApiClient, template_id: int, customizations: dict | None = None) -> Any:
    return api.post("/workflows/from-template", {"templateId": template_id, **(customizations or {})})


@payload_or_message
def import_workflow_templates(api: ApiClient, data: dict | None = None) -> Any:
    return api.post("/workflows/import-templates", data or {})
