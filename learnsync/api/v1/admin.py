# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin maintenance endpoints.

- GET /sync-check - Report pairs that break the enrollment invariants
- POST /sync-repair - Reconcile every reported pair
- POST /requests/repair-stuck - Fix pending requests with a review stamp
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from learnsync.api.dependencies import get_manager, require_admin
from learnsync.api.middleware.auth import CurrentUser
from learnsync.api.v1.responses import unwrap_result
from learnsync.domains.data_manager import (
    DataManager,
    find_inconsistencies,
    repair_inconsistencies,
    repair_stuck_requests,
)
from learnsync.models.maintenance import (
    RepairReport,
    StuckRequestRepairReport,
    SyncCheckResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/sync-check", response_model=SyncCheckResponse)
async def sync_check(
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    manager: Annotated[DataManager, Depends(get_manager)],
) -> SyncCheckResponse:
    async with manager.read_session() as session:
        report = await find_inconsistencies(session, manager.settings.retain_processed_requests)
    return SyncCheckResponse(
        consistent=report.is_consistent,
        total_issues=report.total_issues,
        report=report,
    )


@router.post("/sync-repair", response_model=RepairReport)
async def sync_repair(
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    manager: Annotated[DataManager, Depends(get_manager)],
) -> RepairReport:
    logger.info("Sync repair started by admin %s", current_user.id)
    return await repair_inconsistencies(manager=manager)


@router.post("/requests/repair-stuck", response_model=StuckRequestRepairReport)
async def repair_stuck(
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    manager: Annotated[DataManager, Depends(get_manager)],
) -> StuckRequestRepairReport:
    logger.info("Stuck request repair started by admin %s", current_user.id)
    result = await repair_stuck_requests(manager=manager)
    return unwrap_result(result)
