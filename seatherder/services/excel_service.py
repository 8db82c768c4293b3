"""
Excel processing service for guest data import/export
"""

import io
import logging
from typing import List, Dict, Tuple
import pandas as pd
from sqlalchemy.orm import Session

from seatherder.models import Event, Guest
from seatherder.services.repositories import GuestRepo, RoundRepo, TableRepo

logger = logging.getLogger(__name__)

class ExcelService:
    """Service for handling Excel operations"""

    REQUIRED_COLUMNS = ['name']
    OPTIONAL_COLUMNS = ['department', 'email']

    @staticmethod
    def create_template() -> bytes:
        """Create Excel template with the guest list columns"""
        df = pd.DataFrame(
            [
                ['Sample Guest 1', 'Engineering', 'guest1@example.com'],
                ['Sample Guest 2', 'Sales', ''],
                ['Sample Guest 3', '', ''],
            ],
            columns=['Name', 'Department', 'Email']
        )

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()

    @staticmethod
    def map_columns(df: pd.DataFrame) -> Dict[str, str]:
        """Map canonical column keys to the sheet's own headers"""
        column_mapping = {}
        for col in df.columns:
            col_lower = str(col).lower().strip()
            for key in ExcelService.REQUIRED_COLUMNS + ExcelService.OPTIONAL_COLUMNS:
                if key not in column_mapping and key in col_lower:
                    column_mapping[key] = col
                    break
        return column_mapping

    @staticmethod
    def validate_excel_structure(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate Excel file structure"""
        errors = []

        column_mapping = ExcelService.map_columns(df)
        missing_columns = [col for col in ExcelService.REQUIRED_COLUMNS if col not in column_mapping]

        if missing_columns:
            errors.append(f"Missing required columns: {', '.join(missing_columns)}")

        return len(errors) == 0, errors

    @staticmethod
    def _cell(row, column_mapping: Dict[str, str], key: str):
        if key not in column_mapping:
            return None
        value = row[column_mapping[key]]
        if pd.isna(value):
            return None
        value = str(value).strip()
        return value or None

    @staticmethod
    def parse_guests(df: pd.DataFrame) -> List[Dict]:
        """Turn sheet rows into guest field dicts, skipping blank names"""
        column_mapping = ExcelService.map_columns(df)
        guests = []
        for _, row in df.iterrows():
            name = ExcelService._cell(row, column_mapping, 'name')
            if not name:
                continue
            guests.append({
                "name": name,
                "department": ExcelService._cell(row, column_mapping, 'department'),
                "email": ExcelService._cell(row, column_mapping, 'email'),
            })
        return guests

    @staticmethod
    def process_excel_upload(
        file_content: bytes,
        event: Event,
        db: Session
    ) -> Tuple[bool, List[str], int]:
        """Replace an event's guest list with the uploaded sheet"""
        try:
            df = pd.read_excel(io.BytesIO(file_content))

            valid_structure, structure_errors = ExcelService.validate_excel_structure(df)
            if not valid_structure:
                return False, structure_errors, 0

            guests = ExcelService.parse_guests(df)
            if not guests:
                return False, ["No guests found in file"], 0

            # A new guest list invalidates any existing seating
            RoundRepo.delete_for_event(db, event.id)
            TableRepo.delete_for_event(db, event.id)
            GuestRepo.delete_for_event(db, event.id)

            for data in guests:
                db.add(Guest(event_id=event.id, checked_in=False, **data))

            event.is_assigned = False
            event.current_round = 0
            event.round_started_at = None
            event.is_paused = False
            event.paused_time_remaining = None
            db.commit()

            logger.info(f"Imported {len(guests)} guests into event {event.public_code}")
            return True, [], len(guests)

        except Exception as e:
            db.rollback()
            logger.error(f"Error processing Excel file: {e}")
            return False, [f"Error processing Excel file: {str(e)}"], 0

    @staticmethod
    def export_current_data(event_id: int, db: Session, include_checkin: bool = True) -> bytes:
        """Export current guest data and seating to Excel"""
        data = []
        for guest in GuestRepo.list_for_event(db, event_id):
            row = {
                'Name': guest.name,
                'Department': guest.department or '',
                'Email': guest.email or '',
                'Table': guest.table_number if guest.table_number is not None else '',
                'Check-in ID': guest.check_in_id or ''
            }
            if include_checkin:
                row['Checked In'] = 'Yes' if guest.checked_in else 'No'

            data.append(row)

        df = pd.DataFrame(data, columns=['Name', 'Department', 'Email', 'Table', 'Check-in ID']
                          + (['Checked In'] if include_checkin else []))

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()
