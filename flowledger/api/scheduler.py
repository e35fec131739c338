"""Notification scheduler endpoints (jobs, runs, confirmations)."""

from typing import Any, Dict, List, Optional

from flowledger.api.client import ApiClient


async def list_jobs(client: ApiClient) -> List[Dict[str, Any]]:
    return await client.get("/jobs")


async def create_job(client: ApiClient, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Create a job; payload needs name, rule and first_run_at."""
    return await client.post("/jobs", payload)


async def list_job_runs(
    client: ApiClient,
    status: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> List[Dict[str, Any]]:
    return await client.get("/job-runs", params={"status": status, "from": date_from, "to": date_to})


async def create_confirmation(
    client: ApiClient,
    job_run_id: int,
    action: str,
    idempotency_key: str,
    payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body = {"job_run_id": job_run_id, "action": action, "idempotency_key": idempotency_key, "payload": payload}
    return await client.post("/confirmations", body)
