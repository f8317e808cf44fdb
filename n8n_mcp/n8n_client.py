"""
n8n API client

Thin async wrapper around the n8n public REST API (v1). One method per
backend operation; each call is an independent request with no retries and
no caching.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from n8n_mcp.config import N8nConfig
from n8n_mcp.errors import N8nApiError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-N8N-API-KEY"


def _segment(value: Any) -> str:
    """Quote a path parameter so it stays a single path segment"""
    return quote(str(value), safe="")


def _query(**filters: Any) -> Optional[Dict[str, str]]:
    """Build query params from the filters that were actually given"""
    params = {}
    for key, value in filters.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        params[key] = str(value)
    return params or None


class N8nClient:
    """Client for one n8n instance"""

    def __init__(self, config: N8nConfig, http_transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._http_transport = http_transport
        self._headers = {
            API_KEY_HEADER: config.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def __repr__(self) -> str:
        return f"N8nClient(api_url={self.config.api_url!r})"

    def _make_url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body"""
        url = self._make_url(path)
        kwargs: Dict[str, Any] = {"headers": self._headers}
        if params:
            kwargs["params"] = params
        if json is not None:
            kwargs["json"] = json

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_ms / 1000,
                transport=self._http_transport,
            ) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            logger.warning(f"n8n request timed out: {method} {path} ({self.config.timeout_ms}ms)")
            raise N8nApiError(
                None,
                f"request exceeded {self.config.timeout_ms}ms",
                timed_out=True,
            ) from None

        if not response.is_success:
            logger.warning(f"n8n API error {response.status_code} for {method} {path}")
            raise N8nApiError(response.status_code, response.text)

        if not response.content:
            return None
        return response.json()

    # ==================== Workflows ====================

    async def list_workflows(
        self,
        active: Optional[bool] = None,
        tags: Optional[List[str]] = None,
        name: Optional[str] = None,
        project_id: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Any:
        params = _query(active=active, tags=tags, name=name, projectId=project_id, limit=limit, cursor=cursor)
        return await self._request("GET", "/workflows", params=params)

    async def get_workflow(self, workflow_id: str) -> Any:
        return await self._request("GET", f"/workflows/{_segment(workflow_id)}")

    async def create_workflow(self, workflow: Dict[str, Any]) -> Any:
        return await self._request("POST", "/workflows", json=workflow)

    async def update_workflow(self, workflow_id: str, workflow: Dict[str, Any]) -> Any:
        return await self._request("PUT", f"/workflows/{_segment(workflow_id)}", json=workflow)

    async def delete_workflow(self, workflow_id: str) -> Any:
        return await self._request("DELETE", f"/workflows/{_segment(workflow_id)}")

    async def activate_workflow(self, workflow_id: str) -> Any:
        return await self._request("POST", f"/workflows/{_segment(workflow_id)}/activate")

    async def deactivate_workflow(self, workflow_id: str) -> Any:
        return await self._request("POST", f"/workflows/{_segment(workflow_id)}/deactivate")

    async def execute_workflow(self, workflow_id: str, data: Optional[Dict[str, Any]] = None) -> Any:
        body = data if data is not None else {}
        return await self._request("POST", f"/workflows/{_segment(workflow_id)}/run", json=body)

    async def get_workflow_tags(self, workflow_id: str) -> Any:
        return await self._request("GET", f"/workflows/{_segment(workflow_id)}/tags")

    async def update_workflow_tags(self, workflow_id: str, tags: List[str]) -> Any:
        """
        Replace the workflow's tags; n8n expects ``[{"name": ...}, ...]``.

        Non-list values are forwarded unchanged for n8n to reject. An absent
        ``tags`` is never sent as ``[]``, which would clear every tag.
        """
        body = [{"name": tag} for tag in tags] if isinstance(tags, list) else tags
        return await self._request("PUT", f"/workflows/{_segment(workflow_id)}/tags", json=body)

    # ==================== Executions ====================

    async def list_executions(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        include_data: Optional[bool] = None,
    ) -> Any:
        params = _query(
            workflowId=workflow_id,
            status=status,
            limit=limit,
            cursor=cursor,
            includeData=include_data,
        )
        return await self._request("GET", "/executions", params=params)

    async def get_execution(self, execution_id: str, include_data: Optional[bool] = None) -> Any:
        params = _query(includeData=include_data)
        return await self._request("GET", f"/executions/{_segment(execution_id)}", params=params)

    async def delete_execution(self, execution_id: str) -> Any:
        return await self._request("DELETE", f"/executions/{_segment(execution_id)}")

    async def retry_execution(self, execution_id: str) -> Any:
        return await self._request("POST", f"/executions/{_segment(execution_id)}/retry", json={})

    # ==================== Credentials ====================

    async def create_credential(self, credential: Dict[str, Any]) -> Any:
        return await self._request("POST", "/credentials", json=credential)

    async def update_credential(self, credential_id: str, credential: Dict[str, Any]) -> Any:
        return await self._request("PATCH", f"/credentials/{_segment(credential_id)}", json=credential)

    async def delete_credential(self, credential_id: str) -> Any:
        return await self._request("DELETE", f"/credentials/{_segment(credential_id)}")

    async def get_credential_schema(self, credential_type: str) -> Any:
        return await self._request("GET", f"/credentials/schema/{_segment(credential_type)}")

    # ==================== Tags ====================

    async def list_tags(self, limit: Optional[int] = None, cursor: Optional[str] = None) -> Any:
        return await self._request("GET", "/tags", params=_query(limit=limit, cursor=cursor))

    async def get_tag(self, tag_id: str) -> Any:
        return await self._request("GET", f"/tags/{_segment(tag_id)}")

    async def create_tag(self, name: str) -> Any:
        return await self._request("POST", "/tags", json={"name": name})

    async def update_tag(self, tag_id: str, name: str) -> Any:
        return await self._request("PUT", f"/tags/{_segment(tag_id)}", json={"name": name})

    async def delete_tag(self, tag_id: str) -> Any:
        return await self._request("DELETE", f"/tags/{_segment(tag_id)}")

    # ==================== Variables ====================

    async def list_variables(self, limit: Optional[int] = None, cursor: Optional[str] = None) -> Any:
        return await self._request("GET", "/variables", params=_query(limit=limit, cursor=cursor))

    async def create_variable(self, key: str, value: Any) -> Any:
        return await self._request("POST", "/variables", json={"key": key, "value": value})

    async def update_variable(self, variable_id: str, key: str, value: Any) -> Any:
        return await self._request(
            "PUT", f"/variables/{_segment(variable_id)}", json={"key": key, "value": value}
        )

    async def delete_variable(self, variable_id: str) -> Any:
        return await self._request("DELETE", f"/variables/{_segment(variable_id)}")

    # ==================== Users (owner only) ====================

    async def list_users(
        self,
        include_role: Optional[bool] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Any:
        params = _query(includeRole=include_role, limit=limit, cursor=cursor)
        return await self._request("GET", "/users", params=params)

    async def get_user(self, identifier: str) -> Any:
        """Look up a user by ID or e-mail address"""
        return await self._request("GET", f"/users/{_segment(identifier)}")

    async def delete_user(self, user_id: str) -> Any:
        return await self._request("DELETE", f"/users/{_segment(user_id)}")

    async def update_user_role(self, user_id: str, role: str) -> Any:
        return await self._request("PATCH", f"/users/{_segment(user_id)}/role", json={"role": role})
