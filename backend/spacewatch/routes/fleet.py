# spacewatch/routes/fleet.py
# ------------------------------------------------------------
# Satellite fleet API
#
# Reads return snapshots; commands go through FleetEngine and
# report soft failures (unknown id) as 404.
# ------------------------------------------------------------

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from typing import List, Optional

from ..fleet import FLEET_QUICK_ACTIONS
from ..fleet_engine import FleetEngine
from ..models import SatelliteMode, SatelliteType
from ._common import get_fleet

router = APIRouter(tags=["fleet"])


class ModeChangeRequest(BaseModel):
    mode: SatelliteMode
    reason: Optional[str] = None


class FleetSafeModeRequest(BaseModel):
    reason: str = "Emergency protocol activated by operator"


class FleetModeRequest(BaseModel):
    mode: SatelliteMode
    reason: Optional[str] = None
    from_modes: Optional[List[SatelliteMode]] = None
    satellite_type: Optional[SatelliteType] = None


@router.get("/api/fleet")
async def fleet_snapshot(engine: FleetEngine = Depends(get_fleet)):
    return engine.get_fleet().model_dump(mode="json")


@router.get("/api/fleet/satellites/{satellite_id}")
async def satellite_detail(satellite_id: str, engine: FleetEngine = Depends(get_fleet)):
    sat = engine.get_satellite(satellite_id)
    if sat is None:
        raise HTTPException(status_code=404, detail=f"Unknown satellite {satellite_id}.")
    return sat.model_dump(mode="json")


@router.post("/api/fleet/satellites/{satellite_id}/mode")
async def set_satellite_mode(
    satellite_id: str,
    body: ModeChangeRequest,
    engine: FleetEngine = Depends(get_fleet),
):
    if not engine.set_mode(satellite_id, body.mode, body.reason):
        raise HTTPException(status_code=404, detail=f"Unknown satellite {satellite_id}.")
    sat = engine.get_satellite(satellite_id)
    return {"ok": True, "satellite": sat.model_dump(mode="json") if sat else None}


@router.post("/api/fleet/safe-mode")
async def fleet_safe_mode(body: FleetSafeModeRequest, engine: FleetEngine = Depends(get_fleet)):
    """
    Fleet-wide safing. Maintenance satellites are left alone.
    """
    changed = engine.set_fleet_to_safe_mode(body.reason)
    return {"ok": True, "changed": changed}


@router.get("/api/fleet/mode-changes")
async def mode_changes(
    limit: int = Query(10, ge=1, le=100),
    engine: FleetEngine = Depends(get_fleet),
):
    """
    Fleet-wide mode change timeline (newest first).
    """
    items = engine.get_recent_mode_changes(limit)
    return {"items": [c.model_dump(mode="json") for c in items]}


@router.post("/api/fleet/mode")
async def fleet_mode(body: FleetModeRequest, engine: FleetEngine = Depends(get_fleet)):
    """
    Bulk mode change, optionally filtered by current mode and satellite type.
    """
    changed = engine.set_fleet_mode(
        body.mode,
        body.reason,
        from_modes=body.from_modes,
        satellite_type=body.satellite_type,
    )
    return {"ok": True, "changed": changed}


@router.get("/api/fleet/actions")
async def quick_actions():
    return {"items": sorted(FLEET_QUICK_ACTIONS)}


@router.post("/api/fleet/actions/{action}")
async def run_quick_action(action: str, engine: FleetEngine = Depends(get_fleet)):
    preset = FLEET_QUICK_ACTIONS.get(action)
    if preset is None:
        raise HTTPException(status_code=404, detail=f"Unknown fleet action {action}.")
    changed = engine.set_fleet_mode(**preset)
    return {"ok": True, "action": action, "changed": changed}
