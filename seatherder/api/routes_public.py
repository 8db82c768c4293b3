"""
Public API routes - no authentication required
"""

import secrets
from typing import Optional
from fastapi import APIRouter, Depends, Request, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from seatherder.core.config import settings
from seatherder.core.db import get_db
from seatherder.services.excel_service import ExcelService
from seatherder.services.qr_service import QRService
from seatherder.services.repositories import EventRepo, GuestRepo, TableRepo
from seatherder.services.seating_service import SeatingService
from seatherder.utils.security import rate_limit_check, get_client_ip
from seatherder.utils.responses import success_response, rate_limit_error

router = APIRouter()

def png_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename={filename}"}
    )

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/template/guest_list_template.xlsx")
async def download_template():
    """Download Excel template for guest lists"""
    return Response(
        content=ExcelService.create_template(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=guest_list_template.xlsx"}
    )

@router.get("/events/{public_code}/qr.png")
async def get_event_qr(
    public_code: str,
    db: Session = Depends(get_db)
):
    """QR code pointing at the event guest portal"""
    if not EventRepo.get_by_public_code(db, public_code):
        raise HTTPException(status_code=404, detail="Event not found")

    return png_response(QRService.generate_event_qr(public_code), f"qr_{public_code}.png")

@router.get("/qr/{check_in_id}.png")
async def get_check_in_qr(
    check_in_id: str,
    db: Session = Depends(get_db)
):
    """QR code for a guest's or a table's check-in token"""
    if not (GuestRepo.get_by_check_in_id(db, check_in_id)
            or TableRepo.get_by_check_in_id(db, check_in_id)):
        raise HTTPException(status_code=404, detail="Check-in code not found")

    return png_response(QRService.generate_check_in_qr(check_in_id), f"checkin_{check_in_id}.png")

@router.get("/events/{public_code}/seating")
async def get_seating_summary(
    public_code: str,
    request: Request,
    include_names: bool = False,
    admin_token: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get public seating summary"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        rate_limit_error()

    # Names are only shown to the organizer
    if include_names and not (admin_token and secrets.compare_digest(admin_token, settings.ADMIN_TOKEN)):
        include_names = False

    summary = SeatingService.get_seating_summary(
        db=db,
        public_code=public_code,
        include_names=include_names
    )

    if summary is None:
        raise HTTPException(status_code=404, detail="Event not found")

    return success_response(
        message="Seating summary retrieved successfully",
        data=summary
    )
