"""
Guest check-in service with real-time broadcasting
"""

from datetime import datetime
from typing import Optional, Dict
from sqlalchemy.orm import Session

from seatherder.models import Guest
from seatherder.api.ws import WebSocketManager
from seatherder.services.repositories import GuestRepo

class CheckInService:
    """Service for handling guest check-ins"""

    def __init__(self, websocket_manager: WebSocketManager):
        self.websocket_manager = websocket_manager

    @staticmethod
    def guest_payload(guest: Guest) -> Dict:
        return {
            "id": guest.id,
            "name": guest.name,
            "department": guest.department,
            "table_number": guest.table_number,
            "checked_in": guest.checked_in,
        }

    async def _set_checked_in(
        self,
        check_in_id: str,
        checked_in: bool,
        db: Session
    ) -> Optional[Dict]:
        guest = GuestRepo.get_by_check_in_id(db, check_in_id)
        if not guest:
            return None

        was_checked_in = bool(guest.checked_in)
        GuestRepo.set_checked_in(db, guest, checked_in)

        message_guest = self.guest_payload(guest)
        message = {
            "type": "checkin" if checked_in else "checkin_undone",
            "guest": message_guest,
            "timestamp": datetime.utcnow().isoformat(),
            "was_already_checked_in": was_checked_in
        }

        # Broadcast to all connected clients for this event
        await self.websocket_manager.broadcast_to_event(guest.event.public_code, message)

        return {"guest": message_guest, "was_already_checked_in": was_checked_in}

    async def check_in_guest(self, check_in_id: str, db: Session) -> Optional[Dict]:
        """Check in the guest holding a check-in token and broadcast the update"""
        return await self._set_checked_in(check_in_id, True, db)

    async def undo_check_in(self, check_in_id: str, db: Session) -> Optional[Dict]:
        """Revert a guest's check-in"""
        return await self._set_checked_in(check_in_id, False, db)

    async def broadcast_seating_update(
        self,
        public_code: str,
        update_type: str = "seating_update"
    ):
        """Broadcast seating data update to connected clients"""

        message = {
            "type": update_type,
            "timestamp": datetime.utcnow().isoformat(),
            "message": "Seating arrangement has been updated"
        }

        await self.websocket_manager.broadcast_to_event(public_code, message)

    async def broadcast_guest_update(
        self,
        public_code: str,
        guest: Guest,
        update_type: str = "guest_update"
    ):
        """Broadcast individual guest update"""

        message = {
            "type": update_type,
            "guest": self.guest_payload(guest),
            "timestamp": datetime.utcnow().isoformat()
        }

        await self.websocket_manager.broadcast_to_event(public_code, message)
