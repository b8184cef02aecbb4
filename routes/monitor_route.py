"""FastAPI routes for the engagement monitor."""

from fastapi import APIRouter, HTTPException, Request

from controllers.monitor_controller import monitor_frame, monitor_state, start_monitor, stop_monitor

router = APIRouter(prefix="/monitor", tags=["monitor"])


@router.post("/start")
async def start_monitor_route(request: Request):
	"""Acquire the camera and begin periodic engagement analysis."""
	try:
		return await start_monitor(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail="Failed to start monitoring.") from exc


@router.post("/stop")
async def stop_monitor_route(request: Request):
	try:
		return await stop_monitor(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail="Failed to stop monitoring.") from exc


@router.get("/state")
async def monitor_state_route(request: Request):
	return await monitor_state(request)


@router.get("/frame")
async def monitor_frame_route(request: Request):
	"""Return the current camera frame as JPEG for the preview panel."""
	try:
		return await monitor_frame(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail="Failed to read camera frame.") from exc
