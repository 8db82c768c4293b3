"""
Admin API routes - requires authentication
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from seatherder.core.config import settings
from seatherder.core.db import get_db
from seatherder.models import Event, Guest
from seatherder.schemas.constraint import ConstraintCreate, ConstraintResponse
from seatherder.schemas.event import (
    EventCreate,
    EventResponse,
    RoundDurationUpdate,
    RoundsUpdate,
    TableSizeUpdate,
)
from seatherder.schemas.guest import GuestCreate, GuestUpdate, GuestResponse
from seatherder.services.excel_service import ExcelService
from seatherder.services.checkin_service import CheckInService
from seatherder.services.constraint_service import ConstraintService
from seatherder.services.repositories import ConstraintRepo, EventRepo, GuestRepo, escape_like
from seatherder.services.seating_service import SeatingService
from seatherder.api.ws import websocket_manager
from seatherder.utils.security import verify_admin_token, generate_public_code
from seatherder.utils.responses import success_response, error_response, not_found_error

router = APIRouter(dependencies=[Depends(verify_admin_token)])

checkin_service = CheckInService(websocket_manager)

def get_event_or_404(db: Session, event_id: int) -> Event:
    event = EventRepo.get_by_id(db, event_id)
    if not event:
        not_found_error("Event")
    return event

def get_guest_or_404(db: Session, event_id: int, guest_id: int) -> Guest:
    guest = GuestRepo.get(db, event_id, guest_id)
    if not guest:
        not_found_error("Guest")
    return guest

@router.post("/events")
async def create_event(
    event_data: EventCreate,
    db: Session = Depends(get_db)
):
    """Create a new event"""
    public_code = generate_public_code()
    while EventRepo.public_code_exists(db, public_code):
        public_code = generate_public_code()

    event = EventRepo.create(
        db,
        name=event_data.name,
        organizer_email=event_data.organizer_email,
        public_code=public_code,
        date=event_data.date,
        table_size=event_data.table_size,
        number_of_rounds=event_data.number_of_rounds,
        round_duration=event_data.round_duration
    )

    return success_response(
        message="Event created successfully",
        data=EventResponse.model_validate(event).model_dump(mode="json"),
        status_code=201
    )

@router.get("/events/{event_id}")
async def get_event_details(
    event_id: int,
    db: Session = Depends(get_db)
):
    """Get detailed event information"""
    event = get_event_or_404(db, event_id)

    data = EventResponse.model_validate(event).model_dump(mode="json")
    data.update({
        "total_guests": len(event.guests),
        "total_tables": len(event.tables),
        "checked_in_count": sum(1 for g in event.guests if g.checked_in)
    })

    return success_response(message="Event details retrieved", data=data)

@router.delete("/events/{event_id}")
async def delete_event(
    event_id: int,
    db: Session = Depends(get_db)
):
    """Delete an event with its guests and seating"""
    event = get_event_or_404(db, event_id)
    db.delete(event)
    db.commit()

    return success_response(
        message="Event deleted successfully",
        data={"deleted_event_id": event_id}
    )

@router.post("/events/{event_id}/upload")
async def upload_excel(
    event_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db)
):
    """Replace the guest list with an uploaded Excel file"""
    event = get_event_or_404(db, event_id)

    if not file.filename.endswith(('.xlsx', '.xls')):
        return error_response(
            message="Invalid file format. Please upload an Excel file (.xlsx or .xls)",
            status_code=400
        )

    file_content = await file.read()
    if len(file_content) > settings.MAX_UPLOAD_SIZE:
        return error_response(message="File too large", status_code=413)

    success, errors, processed_count = ExcelService.process_excel_upload(
        file_content=file_content,
        event=event,
        db=db
    )

    if not success:
        return error_response(
            message="Excel file validation failed",
            details=errors,
            status_code=422
        )

    await checkin_service.broadcast_seating_update(
        public_code=event.public_code,
        update_type="guests_uploaded"
    )

    return success_response(
        message=f"Excel file processed successfully. {processed_count} guests imported.",
        data={
            "processed_count": processed_count,
            "filename": file.filename
        }
    )

@router.get("/events/{event_id}/export.xlsx")
async def export_excel(
    event_id: int,
    db: Session = Depends(get_db)
):
    """Export guests with their current seating"""
    event = get_event_or_404(db, event_id)

    return Response(
        content=ExcelService.export_current_data(event.id, db, include_checkin=True),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=seating_{event.public_code}.xlsx"}
    )

@router.get("/events/{event_id}/guests")
async def search_guests(
    event_id: int,
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Search and list guests for an event"""
    get_event_or_404(db, event_id)

    query = db.query(Guest).filter(Guest.event_id == event_id)
    if search:
        query = query.filter(Guest.name.ilike(f"%{escape_like(search)}%", escape="\\"))

    total = query.count()
    guests = query.order_by(Guest.id).offset((page - 1) * per_page).limit(per_page).all()

    return success_response(
        message="Guests retrieved successfully",
        data={
            "guests": [GuestResponse.model_validate(g).model_dump() for g in guests],
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "pages": (total + per_page - 1) // per_page
            }
        }
    )

@router.post("/events/{event_id}/guests")
async def add_guest(
    event_id: int,
    guest_data: GuestCreate,
    db: Session = Depends(get_db)
):
    """Add a guest; they stay unseated until the next assignment"""
    event = get_event_or_404(db, event_id)

    guest = Guest(event_id=event.id, checked_in=False, **guest_data.model_dump())
    db.add(guest)
    db.commit()
    db.refresh(guest)

    return success_response(
        message="Guest added successfully",
        data=GuestResponse.model_validate(guest).model_dump(),
        status_code=201
    )

@router.patch("/events/{event_id}/guests/{guest_id}")
async def update_guest(
    event_id: int,
    guest_id: int,
    guest_update: GuestUpdate,
    db: Session = Depends(get_db)
):
    """Update guest information"""
    event = get_event_or_404(db, event_id)
    guest = get_guest_or_404(db, event_id, guest_id)

    for field, value in guest_update.model_dump(exclude_unset=True).items():
        setattr(guest, field, value)
    guest.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(guest)

    await checkin_service.broadcast_guest_update(
        public_code=event.public_code,
        guest=guest,
        update_type="guest_updated"
    )

    return success_response(
        message="Guest updated successfully",
        data=GuestResponse.model_validate(guest).model_dump()
    )

@router.delete("/events/{event_id}/guests/{guest_id}")
async def delete_guest(
    event_id: int,
    guest_id: int,
    db: Session = Depends(get_db)
):
    """Remove a guest from the event"""
    guest = get_guest_or_404(db, event_id, guest_id)
    ConstraintRepo.delete_for_guest(db, guest.id)
    db.delete(guest)
    db.commit()

    return success_response(message="Guest removed", data={"deleted_guest_id": guest_id})

@router.post("/events/{event_id}/undo-checkin/{check_in_id}")
async def undo_check_in(
    event_id: int,
    check_in_id: str,
    db: Session = Depends(get_db)
):
    """Revert a guest's check-in"""
    get_event_or_404(db, event_id)

    result = await checkin_service.undo_check_in(check_in_id, db)
    if not result:
        not_found_error("Guest")

    return success_response(message="Check-in undone", data=result)

@router.post("/events/{event_id}/assign")
async def assign_tables(
    event_id: int,
    db: Session = Depends(get_db)
):
    """Shuffle guests into tables; every call produces a fresh arrangement"""
    event = get_event_or_404(db, event_id)

    result = SeatingService.assign_event(db, event.id)

    await checkin_service.broadcast_seating_update(
        public_code=event.public_code,
        update_type="tables_assigned"
    )

    return success_response(message="Tables assigned", data=result)

@router.post("/events/{event_id}/reset")
async def reset_tables(
    event_id: int,
    db: Session = Depends(get_db)
):
    """Clear all table assignments, keeping check-ins"""
    event = get_event_or_404(db, event_id)

    SeatingService.reset_event(db, event.id)

    await checkin_service.broadcast_seating_update(
        public_code=event.public_code,
        update_type="tables_reset"
    )

    return success_response(message="Assignments reset", data={"is_assigned": False})

@router.put("/events/{event_id}/rounds")
async def update_rounds(
    event_id: int,
    rounds_update: RoundsUpdate,
    db: Session = Depends(get_db)
):
    """Change how many table rotations the event runs"""
    event = get_event_or_404(db, event_id)

    result = SeatingService.update_rounds(db, event.id, rounds_update.number_of_rounds)

    return success_response(message="Rounds updated", data=result)

@router.get("/events/{event_id}/clustering")
async def clustering_report(
    event_id: int,
    db: Session = Depends(get_db)
):
    """Tables where one department has clustered"""
    get_event_or_404(db, event_id)

    report = SeatingService.get_clustering_report(db, event_id)

    return success_response(
        message="Clustering report generated",
        data={"clustered_tables": report}
    )

@router.put("/events/{event_id}/table-size")
async def update_table_size(
    event_id: int,
    table_size_update: TableSizeUpdate,
    db: Session = Depends(get_db)
):
    """Change the seats per table; takes effect at the next assignment"""
    event = get_event_or_404(db, event_id)

    result = SeatingService.update_table_size(db, event.id, table_size_update.table_size)

    return success_response(message="Table size updated", data=result)

@router.put("/events/{event_id}/round-duration")
async def update_round_duration(
    event_id: int,
    duration_update: RoundDurationUpdate,
    db: Session = Depends(get_db)
):
    """Set or clear the round timer"""
    event = get_event_or_404(db, event_id)

    result = SeatingService.update_round_duration(db, event.id, duration_update.round_duration)

    return success_response(message="Round duration updated", data=result)

ROUND_ACTIONS = {
    "start": (SeatingService.start_next_round, "round_started", "Round started"),
    "end": (SeatingService.end_current_round, "round_ended", "Round ended"),
    "reset": (SeatingService.reset_rounds, "rounds_reset", "Rounds reset"),
    "pause": (SeatingService.pause_round, "round_paused", "Round paused"),
    "resume": (SeatingService.resume_round, "round_resumed", "Round resumed"),
}

@router.post("/events/{event_id}/rounds/{action}")
async def control_round(
    event_id: int,
    action: str,
    db: Session = Depends(get_db)
):
    """Drive the live rotation: start, end, reset, pause or resume a round"""
    event = get_event_or_404(db, event_id)
    if action not in ROUND_ACTIONS:
        not_found_error("Round action")

    operation, update_type, message = ROUND_ACTIONS[action]
    result = operation(db, event.id)

    await checkin_service.broadcast_seating_update(
        public_code=event.public_code,
        update_type=update_type
    )

    return success_response(message=message, data=result)

@router.get("/events/{event_id}/constraints")
async def list_constraints(
    event_id: int,
    db: Session = Depends(get_db)
):
    """Seating constraints of an event"""
    get_event_or_404(db, event_id)

    constraints = ConstraintRepo.list_for_event(db, event_id)

    return success_response(
        message="Constraints retrieved",
        data=[ConstraintResponse.model_validate(c).model_dump(mode="json") for c in constraints]
    )

@router.post("/events/{event_id}/constraints")
async def create_constraint(
    event_id: int,
    constraint_data: ConstraintCreate,
    db: Session = Depends(get_db)
):
    """Pin a guest to a table, or keep two guests apart or together"""
    event = get_event_or_404(db, event_id)

    constraint = ConstraintService.create_constraint(db, event, constraint_data)

    return success_response(
        message="Constraint created",
        data=ConstraintResponse.model_validate(constraint).model_dump(mode="json"),
        status_code=201
    )

@router.delete("/events/{event_id}/constraints/{constraint_id}")
async def delete_constraint(
    event_id: int,
    constraint_id: int,
    db: Session = Depends(get_db)
):
    """Remove a seating constraint"""
    get_event_or_404(db, event_id)

    if not ConstraintService.delete_constraint(db, event_id, constraint_id):
        not_found_error("Constraint")

    return success_response(message="Constraint removed", data={"deleted_constraint_id": constraint_id})

@router.get("/events/{event_id}/constraints/report")
async def constraint_report(
    event_id: int,
    db: Session = Depends(get_db)
):
    """Constraint violations in the stored rounds and conflicting constraints"""
    get_event_or_404(db, event_id)

    report = ConstraintService.get_constraint_report(db, event_id)

    return success_response(message="Constraint report generated", data=report)
