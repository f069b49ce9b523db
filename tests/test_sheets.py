"""
Tests for the roster <-> Google Sheet sync, using a fake Sheets service.
"""

import json
import unittest
from unittest.mock import MagicMock

from db_helpers import DatabaseTestCase

from charasphere.utils.models import RosterModel
from charasphere.utils.session import get_session
from charasphere.utils.sheets import (
    SHEET_RANGE,
    SheetsSyncError,
    SheetsUtil,
    character_to_row,
    row_to_character,
)


def _fake_service(rows=None):
    service = MagicMock()
    values = service.spreadsheets.return_value.values.return_value
    values.get.return_value.execute.return_value = {"values": rows} if rows is not None else {}
    values.update.return_value.execute.return_value = {}
    return service


class TestRowConversion(unittest.TestCase):

    def test_row_to_character(self):
        row = ["7", "Lyra", "A wandering bard", "3", "", '["Hello!"]', "https://img/1.jpg"]
        character = row_to_character(row)

        self.assertEqual(character["characterid"], 7)
        self.assertEqual(character["rarity"], 3)
        self.assertIsNone(character["seriesid"])
        self.assertEqual(json.loads(character["dialogs"]), ["Hello!"])
        self.assertEqual(character["image1url"], "https://img/1.jpg")
        self.assertIsNone(character["image6url"])
        self.assertFalse(character["claimed"])

    def test_unusable_rows_are_skipped(self):
        self.assertIsNone(row_to_character([]))
        self.assertIsNone(row_to_character(["abc", "Name"]))
        self.assertIsNone(row_to_character(["5", ""]))

    def test_bad_dialogs_become_empty_list(self):
        character = row_to_character(["5", "Kai", "", "", "", "{not json"])
        self.assertEqual(character["dialogs"], "[]")
        self.assertEqual(character["rarity"], 1)

    def test_rarity_is_clamped_to_range(self):
        self.assertEqual(row_to_character(["5", "Kai", "", "9"])["rarity"], 6)
        self.assertEqual(row_to_character(["5", "Kai", "", "0"])["rarity"], 1)
        self.assertEqual(row_to_character(["5", "Kai", "", "-3"])["rarity"], 1)
        self.assertEqual(row_to_character(["5", "Kai", "", "6"])["rarity"], 6)

    def test_character_to_row_has_thirteen_cells(self):
        character = RosterModel(
            characterid=3, name="Mira", rarity=2, dialogs='["Hi"]', claimed=True
        )
        row = character_to_row(character)
        self.assertEqual(len(row), 13)
        self.assertEqual(row[0], "3")
        self.assertEqual(row[12], "true")
        self.assertEqual(row_to_character(row)["name"], "Mira")


class TestSheetsSync(DatabaseTestCase):

    def test_sync_from_sheets_upserts_roster(self):
        (existing_id,) = self.seed_characters(1, claimed=True)
        rows = [
            [str(existing_id), "Renamed Hero", "", "2", "", "[]", "", "", "", "", "", "", "false"],
            ["50", "New Hero", "Bio", "1", "", "[]", "", "", "", "", "", "", "false"],
            ["", "No id"],
        ]
        util = SheetsUtil(spreadsheet_id="sheet-1", service=_fake_service(rows))

        result = util.sync_from_sheets()

        self.assertTrue(result["success"])
        self.assertIn("2 characters", result["message"])
        with get_session() as session:
            renamed = session.get(RosterModel, existing_id)
            self.assertEqual(renamed.name, "Renamed Hero")
            # A claimed character is never released by the sheet
            self.assertTrue(renamed.claimed)
            self.assertEqual(session.get(RosterModel, 50).name, "New Hero")

    def test_sync_from_empty_sheet_fails(self):
        util = SheetsUtil(spreadsheet_id="sheet-1", service=_fake_service([]))
        with self.assertRaises(SheetsSyncError):
            util.sync_from_sheets()

    def test_sync_to_sheets_writes_every_character(self):
        self.seed_characters(3)
        service = _fake_service()
        util = SheetsUtil(spreadsheet_id="sheet-1", service=service)

        result = util.sync_to_sheets()

        self.assertTrue(result["success"])
        update = service.spreadsheets.return_value.values.return_value.update
        kwargs = update.call_args.kwargs
        self.assertEqual(kwargs["range"], SHEET_RANGE)
        self.assertEqual(kwargs["valueInputOption"], "RAW")
        self.assertEqual(len(kwargs["body"]["values"]), 3)

    def test_sync_to_sheets_with_empty_roster_fails(self):
        util = SheetsUtil(spreadsheet_id="sheet-1", service=_fake_service())
        with self.assertRaises(SheetsSyncError):
            util.sync_to_sheets()

    def test_unconfigured_util_refuses_to_sync(self):
        util = SheetsUtil()
        self.assertFalse(util.configured)
        with self.assertRaises(SheetsSyncError):
            util.sync_from_sheets()


if __name__ == "__main__":
    unittest.main()
