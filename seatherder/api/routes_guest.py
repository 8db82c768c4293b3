"""
Guest-facing API routes
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from seatherder.core.db import get_db
from seatherder.schemas.guest import LookupRequest, CheckInRequest
from seatherder.services.seating_service import SeatingService
from seatherder.services.checkin_service import CheckInService
from seatherder.services.repositories import EventRepo, GuestRepo, TableRepo
from seatherder.api.ws import websocket_manager
from seatherder.utils.security import rate_limit_check, get_client_ip
from seatherder.utils.responses import success_response, error_response, rate_limit_error

router = APIRouter()

checkin_service = CheckInService(websocket_manager)

NOT_FOUND_MESSAGE = "Guest not found. Please check your name spelling or contact the organizer."

def enforce_rate_limit(request: Request):
    if not rate_limit_check(get_client_ip(request)):
        rate_limit_error()

@router.post("/lookup")
async def lookup_guest(
    request: Request,
    lookup_data: LookupRequest,
    db: Session = Depends(get_db)
):
    """Find guests by name so they can pick their own entry"""
    enforce_rate_limit(request)

    event = EventRepo.get_by_public_code(db, lookup_data.public_code)
    if not event:
        return error_response(message="Event not found", status_code=404)

    matches = GuestRepo.search_by_name(db, event.id, lookup_data.name)
    if not matches:
        return error_response(message=NOT_FOUND_MESSAGE, status_code=404)

    return success_response(
        message=f"{len(matches)} guests found",
        data=[
            {
                "name": guest.name,
                "department": guest.department,
                "table_number": guest.table_number,
                "check_in_id": guest.check_in_id
            }
            for guest in matches
        ]
    )

@router.get("/scan/{check_in_id}")
async def scan_code(
    request: Request,
    check_in_id: str,
    db: Session = Depends(get_db)
):
    """Resolve a scanned QR code to a guest's seating or a table's guest list"""
    enforce_rate_limit(request)

    seating_info = SeatingService.get_guest_seating_info(db, check_in_id)
    if seating_info:
        return success_response(
            message="Guest information found",
            data={"kind": "guest", **seating_info.model_dump()}
        )

    table = TableRepo.get_by_check_in_id(db, check_in_id)
    if table:
        guests = GuestRepo.list_table(db, table.event_id, table.table_number)
        return success_response(
            message="Table information found",
            data={
                "kind": "table",
                "table_number": table.table_number,
                "guests": [
                    {"name": g.name, "department": g.department, "checked_in": g.checked_in}
                    for g in guests
                ]
            }
        )

    return error_response(message="Unknown check-in code", status_code=404)

@router.post("/checkin")
async def check_in_guest(
    request: Request,
    checkin_data: CheckInRequest,
    db: Session = Depends(get_db)
):
    """Check in a guest and broadcast update"""
    enforce_rate_limit(request)

    result = await checkin_service.check_in_guest(checkin_data.check_in_id, db)
    if not result:
        return error_response(message=NOT_FOUND_MESSAGE, status_code=404)

    was_already_checked_in = result["was_already_checked_in"]
    message = "You were already checked in!" if was_already_checked_in else "Successfully checked in!"

    return success_response(message=message, data=result)

@router.get("/portal")
async def guest_portal(event: str = ""):
    """Entry point reached from the event QR code"""
    if not event:
        return error_response(
            message="Event code is required",
            status_code=400
        )

    return success_response(
        message="Guest portal access",
        data={
            "event_code": event,
            "lookup_url": "/guest/lookup",
            "scan_url": "/guest/scan/{check_in_id}",
            "checkin_url": "/guest/checkin"
        }
    )
