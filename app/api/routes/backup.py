"""Backup command API routes.

Owner-only endpoints to inspect and replace the configured database list and
to trigger a backup run. A run is acknowledged immediately; its progress and
failures are reported only through the notify channel. The scheduler runner
in API mode starts runs with `?trigger=scheduled`, so a run it cannot start
(empty list, run in progress) is also reported to the notify channel.
"""
from typing import Literal

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool

from api.schemas.backup import BackupRunResponse, BackupStatusResponse, TargetsResponse, TargetsUpdateRequest
from api.security import verify_admin_key
from backend.services.backup.errors import EmptyConfigurationError, RunInProgressError
from backend.services.backup.orchestrator import BackupOrchestrator
from backend.services.backup.service import get_backup_orchestrator, report_run_error, run_backup


router = APIRouter(
    prefix="/backup",
    tags=["Database Backup"]
)


def get_orchestrator() -> BackupOrchestrator:
    """Dependency returning the process-wide orchestrator."""
    return get_backup_orchestrator()


@router.get("/targets", response_model=TargetsResponse)
async def list_targets(
    orchestrator: BackupOrchestrator = Depends(get_orchestrator),
    _: str = Depends(verify_admin_key),
):
    """List the configured databases in backup order."""
    targets = await run_in_threadpool(orchestrator.store.load)
    return TargetsResponse(targets=targets)


@router.put("/targets", response_model=TargetsResponse)
async def replace_targets(
    request: TargetsUpdateRequest,
    orchestrator: BackupOrchestrator = Depends(get_orchestrator),
    _: str = Depends(verify_admin_key),
):
    """
    Replace the configured database list.

    Accepts either ``{"targets": "db1,db2"}`` or ``{"targets": ["db1", "db2"]}``.
    """
    try:
        saved = await run_in_threadpool(orchestrator.store.save, request.targets)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to save database list: {str(e)}")
    return TargetsResponse(targets=saved)


async def _report_if_scheduled(trigger: str, orchestrator: BackupOrchestrator, error: Exception) -> None:
    """Send the reason a scheduled run was refused to the notify channel."""
    if trigger == "scheduled":
        await report_run_error(trigger=trigger, error=error, orchestrator=orchestrator)


@router.post("/run", response_model=BackupRunResponse, status_code=202)
async def run_backup_now(
    background_tasks: BackgroundTasks,
    trigger: Literal["manual", "scheduled"] = Query(
        "manual",
        description="Who started the run; 'scheduled' also reports refusals to the notify channel",
    ),
    orchestrator: BackupOrchestrator = Depends(get_orchestrator),
    _: str = Depends(verify_admin_key),
):
    """
    Start a backup of all configured databases.

    The run starts in the background after this acknowledgement is returned.
    Per-database failures and the final summary are posted to the notify channel.
    """
    try:
        targets = await run_in_threadpool(orchestrator.load_targets)
    except EmptyConfigurationError as e:
        await _report_if_scheduled(trigger, orchestrator, e)
        raise HTTPException(status_code=400, detail=str(e))

    lock_operation = orchestrator.run_lock.check()
    if lock_operation:
        error = RunInProgressError(f"Cannot start backup: {lock_operation} run is already in progress")
        await _report_if_scheduled(trigger, orchestrator, error)
        raise HTTPException(status_code=409, detail=str(error))

    background_tasks.add_task(run_backup, trigger=trigger, orchestrator=orchestrator)
    return BackupRunResponse(
        success=True,
        message=f"Backup of {len(targets)} database(s) started in background.",
        targets=targets,
    )


@router.get("/status", response_model=BackupStatusResponse)
async def backup_status(
    orchestrator: BackupOrchestrator = Depends(get_orchestrator),
    _: str = Depends(verify_admin_key),
):
    """Report whether a backup run is currently in progress."""
    operation = orchestrator.run_lock.check()
    return BackupStatusResponse(running=bool(operation), operation=operation)
