"""File imports processed as backend tasks.

Each import uploads a file, receives a task handle and then polls
``GET /import/tasks/{task_id}`` until the task finishes:

- receipt OCR recognition  (POST /import/receipts)
- deposit bulk import      (POST /import/deposit)
- exchange-rate import     (POST /import/exchange-rates)

A SUCCEEDED task without a result payload is reported as
TaskResultMissingError here; the poller itself returns such records as-is.
"""

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Any, BinaryIO, List, Optional, Type, TypeVar, Union

import aiofiles
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flowledger.api.client import ApiClient
from flowledger.core.errors import ApiError, TaskResultMissingError
from flowledger.tasks.models import TaskHandle, TaskStatusRecord
from flowledger.tasks.poller import TaskPoller

logger = logging.getLogger(__name__)

TASK_STATUS_PATH = "/import/tasks/{task_id}"
RECEIPT_IMPORT_PATH = "/import/receipts"
DEPOSIT_IMPORT_PATH = "/import/deposit"
EXCHANGE_RATE_IMPORT_PATH = "/import/exchange-rates"

FileInput = Union[str, Path, bytes, BinaryIO]
ResultModel = TypeVar("ResultModel", bound=BaseModel)


# =============================================================================
# Result payloads
# =============================================================================


class _Payload(BaseModel):
    model_config = ConfigDict(extra="allow")


class ReceiptRecognitionItem(_Payload):
    name: str
    type: Optional[str] = None
    amount: float = 0


class ReceiptRecognitionResult(_Payload):
    merchant: Optional[str] = None
    occurred_at: Optional[str] = None
    items: List[ReceiptRecognitionItem] = Field(default_factory=list)


class ImportSectionResult(_Payload):
    total: int = 0
    created: int = 0
    exists: int = 0
    failed: int = 0


class ImportDepositResult(_Payload):
    institutions: ImportSectionResult = Field(default_factory=ImportSectionResult)
    products: ImportSectionResult = Field(default_factory=ImportSectionResult)
    product_balances: ImportSectionResult = Field(default_factory=ImportSectionResult)
    institution_items: List[dict] = Field(default_factory=list)
    product_items: List[dict] = Field(default_factory=list)
    balance_items: List[dict] = Field(default_factory=list)


class ImportExchangeRateItem(_Payload):
    base: str
    quote: str
    rate_date: str
    status: str
    error: Optional[str] = None


class ImportExchangeRateResult(_Payload):
    total: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    items: List[ImportExchangeRateItem] = Field(default_factory=list)


# =============================================================================
# Task endpoints
# =============================================================================


async def get_task_status(client: ApiClient, task_id: str) -> TaskStatusRecord:
    """Read one task status snapshot.

    Raises:
        ApiError: The backend answered with a record that does not parse
            (unknown status, missing task_id...)
    """
    path = TASK_STATUS_PATH.format(task_id=task_id)
    data = await client.get(path)
    try:
        return TaskStatusRecord.model_validate(data)
    except ValidationError as e:
        reported_id = data.get("task_id", task_id) if isinstance(data, dict) else task_id
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        raise ApiError(
            f"Malformed status for task {reported_id}: {field}: {first['msg']}",
            code="invalid_task_status",
            method="GET",
            url=f"{client.base_url}{path}",
        ) from e


async def _read_file(file: FileInput, filename: Optional[str]) -> tuple:
    if isinstance(file, (str, Path)):
        path = Path(file)
        async with aiofiles.open(path, "rb") as f:
            content = await f.read()
        name = filename or path.name
    elif isinstance(file, bytes):
        content = file
        name = filename or "upload"
    else:
        content = file.read()
        name = filename or Path(getattr(file, "name", "upload")).name

    content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
    return name, content, content_type


async def create_import_task(
    client: ApiClient, path: str, file: FileInput, filename: Optional[str] = None
) -> TaskHandle:
    """Upload ``file`` as multipart field ``file`` and return the task handle."""
    name, content, content_type = await _read_file(file, filename)
    data = await client.post(path, files={"file": (name, content, content_type)})
    handle = TaskHandle.model_validate(data)
    logger.info(f"Created import task {handle.task_id} ({path}, {name}, {len(content)} bytes)")
    return handle


async def wait_for_task(
    client: ApiClient,
    task_id: str,
    poller: Optional[TaskPoller] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> TaskStatusRecord:
    """Poll an existing task until it finishes."""
    poller = poller or TaskPoller()

    async def fetch(tid: str) -> TaskStatusRecord:
        return await get_task_status(client, tid)

    return await poller.wait(task_id, fetch, cancel_event=cancel_event)


async def _run_import(
    client: ApiClient,
    path: str,
    file: FileInput,
    result_model: Type[ResultModel],
    filename: Optional[str],
    poller: Optional[TaskPoller],
    cancel_event: Optional[asyncio.Event],
) -> ResultModel:
    handle = await create_import_task(client, path, file, filename=filename)
    record = await wait_for_task(client, handle.task_id, poller=poller, cancel_event=cancel_event)
    if record.result is None:
        raise TaskResultMissingError(record)
    return result_model.model_validate(record.result)


# =============================================================================
# Workflows
# =============================================================================


async def import_receipt(
    client: ApiClient,
    file: FileInput,
    filename: Optional[str] = None,
    poller: Optional[TaskPoller] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> ReceiptRecognitionResult:
    """Recognize a receipt image into merchant, date and line items."""
    return await _run_import(
        client, RECEIPT_IMPORT_PATH, file, ReceiptRecognitionResult, filename, poller, cancel_event
    )


async def import_deposit(
    client: ApiClient,
    file: FileInput,
    filename: Optional[str] = None,
    poller: Optional[TaskPoller] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> ImportDepositResult:
    """Bulk import institutions, products and balances from Excel/CSV."""
    return await _run_import(client, DEPOSIT_IMPORT_PATH, file, ImportDepositResult, filename, poller, cancel_event)


async def import_exchange_rates(
    client: ApiClient,
    file: FileInput,
    filename: Optional[str] = None,
    poller: Optional[TaskPoller] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> ImportExchangeRateResult:
    """Import exchange rates from an .xlsx sheet."""
    return await _run_import(
        client, EXCHANGE_RATE_IMPORT_PATH, file, ImportExchangeRateResult, filename, poller, cancel_event
    )


def summarize(result: Any) -> str:
    """One-line human summary of an import result."""
    if isinstance(result, ImportExchangeRateResult):
        return f"created {result.created}, updated {result.updated}, failed {result.failed} (total {result.total})"
    if isinstance(result, ImportDepositResult):
        parts = []
        for label, section in (
            ("institutions", result.institutions),
            ("products", result.products),
            ("balances", result.product_balances),
        ):
            parts.append(f"{label}: {section.created} created, {section.exists} existing, {section.failed} failed")
        return "; ".join(parts)
    if isinstance(result, ReceiptRecognitionResult):
        return f"{len(result.items)} items from {result.merchant or 'unknown merchant'}"
    return str(result)
