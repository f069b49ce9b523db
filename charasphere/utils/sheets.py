"""Roster <-> Google Sheet synchronisation.

The sheet mirrors the Roster table in ``Roster!A2:M``, one character per row:
characterid, name, bio, rarity, seriesid, dialogs (JSON), image1..image6, claimed.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from charasphere.settings.constants import MAX_RARITY, MIN_RARITY
from charasphere.utils.models import RosterModel
from charasphere.utils.session import get_session

logger = logging.getLogger(__name__)

SHEET_RANGE = "Roster!A2:M"
SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class SheetsSyncError(Exception):
    """Raised when the sheet cannot be read, written or parsed."""


def _cell(row: Sequence[Any], index: int) -> str:
    return str(row[index]).strip() if index < len(row) and row[index] is not None else ""


def _optional_int(value: str) -> Optional[int]:
    try:
        return int(value) if value else None
    except ValueError:
        return None


def _rarity(value: str, characterid: int) -> int:
    rarity = _optional_int(value)
    if rarity is None:
        return MIN_RARITY
    if not MIN_RARITY <= rarity <= MAX_RARITY:
        clamped = max(MIN_RARITY, min(MAX_RARITY, rarity))
        logger.warning(f"Rarity {rarity} for character {characterid} out of range; using {clamped}")
        return clamped
    return rarity


def row_to_character(row: Sequence[Any]) -> Optional[Dict[str, Any]]:
    """Convert one sheet row into Roster column values. Returns None for unusable rows."""
    characterid = _optional_int(_cell(row, 0))
    name = _cell(row, 1)
    if characterid is None or not name:
        return None

    raw_dialogs = _cell(row, 5)
    try:
        dialogs = json.loads(raw_dialogs) if raw_dialogs else []
    except ValueError:
        logger.warning(f"Invalid dialogs JSON for character {characterid}; using []")
        dialogs = []
    if not isinstance(dialogs, list):
        dialogs = []

    character = {
        "characterid": characterid,
        "name": name,
        "bio": _cell(row, 2) or None,
        "rarity": _rarity(_cell(row, 3), characterid),
        "seriesid": _optional_int(_cell(row, 4)),
        "dialogs": json.dumps(dialogs),
        "claimed": _cell(row, 12).lower() == "true",
    }
    for slot in range(1, 7):
        character[f"image{slot}url"] = _cell(row, 5 + slot) or None
    return character


def character_to_row(character: RosterModel) -> List[str]:
    """Convert a roster row into the 13 sheet cells."""
    try:
        dialogs = json.loads(character.dialogs or "[]")
    except ValueError:
        dialogs = []
    return [
        str(character.characterid),
        character.name,
        character.bio or "",
        str(character.rarity),
        str(character.seriesid) if character.seriesid is not None else "",
        json.dumps(dialogs),
        character.image1url or "",
        character.image2url or "",
        character.image3url or "",
        character.image4url or "",
        character.image5url or "",
        character.image6url or "",
        "true" if character.claimed else "false",
    ]


class SheetsUtil:
    def __init__(
        self,
        credentials_json: Optional[str] = None,
        spreadsheet_id: Optional[str] = None,
        service=None,
    ):
        self.credentials_json = credentials_json
        self.spreadsheet_id = spreadsheet_id
        self._service = service

    @property
    def configured(self) -> bool:
        return bool(self._service is not None or (self.credentials_json and self.spreadsheet_id))

    def _get_service(self):
        if self._service is not None:
            return self._service
        if not self.configured:
            raise SheetsSyncError("Google Sheets credentials are not configured")

        # Imported lazily so the API starts without touching Google discovery
        from google.oauth2 import service_account
        from googleapiclient.discovery import build

        try:
            info = json.loads(self.credentials_json)
        except ValueError as e:
            raise SheetsSyncError(f"Invalid GOOGLE_SHEETS_CREDENTIALS: {e}") from e

        credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service

    def sync_from_sheets(self) -> Dict[str, Any]:
        """Upsert every sheet row into the Roster table."""
        response = (
            self._get_service()
            .spreadsheets()
            .values()
            .get(spreadsheetId=self.spreadsheet_id, range=SHEET_RANGE)
            .execute()
        )
        rows = response.get("values") or []
        if not rows:
            raise SheetsSyncError("No data found in sheets")

        characters = []
        for index, row in enumerate(rows, start=2):
            character = row_to_character(row)
            if character is None:
                logger.warning(f"Skipping sheet row {index}: missing characterid or name")
                continue
            characters.append(character)

        with get_session(commit=True) as session:
            for values in characters:
                existing = session.get(RosterModel, values["characterid"])
                if existing is None:
                    session.add(RosterModel(**values))
                    continue
                # A claimed character stays claimed whatever the sheet says
                values["claimed"] = existing.claimed or values["claimed"]
                for column, value in values.items():
                    setattr(existing, column, value)

        logger.info(f"Synced {len(characters)} characters from sheets")
        return {"success": True, "message": f"Synced {len(characters)} characters from sheets"}

    def sync_to_sheets(self) -> Dict[str, Any]:
        """Overwrite the sheet range with the Roster table ordered by id."""
        with get_session() as session:
            characters = session.query(RosterModel).order_by(RosterModel.characterid).all()
            rows = [character_to_row(c) for c in characters]

        if not rows:
            raise SheetsSyncError("No characters found in database")

        (
            self._get_service()
            .spreadsheets()
            .values()
            .update(
                spreadsheetId=self.spreadsheet_id,
                range=SHEET_RANGE,
                valueInputOption="RAW",
                body={"values": rows},
            )
            .execute()
        )
        logger.info(f"Synced {len(rows)} characters to sheets")
        return {"success": True, "message": f"Synced {len(rows)} characters to sheets"}
