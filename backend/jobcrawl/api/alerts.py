from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from jobcrawl.config import Settings, get_settings
from jobcrawl.database import get_db
from jobcrawl.middleware.metrics import record_alert
from jobcrawl.schemas import AlertRequest, AlertResponse
from jobcrawl.services.alerts import Mailer, dispatch

router = APIRouter()


def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer:
    return Mailer.from_settings(settings)


@router.post("/alert", response_model=AlertResponse)
async def send_alert(
    request: AlertRequest,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    result = await dispatch(
        db,
        mailer,
        email=request.email,
        role=request.role,
        location=request.location,
        source=request.source,
    )

    if result.matched == 0:
        record_alert("empty")
        return AlertResponse(sent=0, message="No matching jobs found to send")

    if not result.delivered:
        record_alert("failed")
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to send email"})

    record_alert("sent")
    return AlertResponse(sent=result.sent, message=f"Alert sent with {result.sent} jobs")
