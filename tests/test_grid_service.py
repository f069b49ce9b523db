"""
Tests for saved boards, new games and tile discovery.
"""

import random
import unittest

from sqlalchemy.dialects import postgresql

from db_helpers import USER_ID, DatabaseTestCase, board_tiles

from charasphere.utils import grid
from charasphere.utils.schemas import Tile
from charasphere.utils.services import grid_service
from charasphere.utils.session import get_session


class TestSavedBoards(DatabaseTestCase):

    def test_save_is_an_upsert(self):
        tiles = [Tile.model_validate(t) for t in board_tiles()]
        grid_service.save_grid(USER_ID, tiles, gold_collected=5)
        grid_service.save_grid(USER_ID, tiles[:3])

        progress = grid_service.get_grid(USER_ID)
        self.assertEqual(len(progress.tilemap), 3)
        self.assertEqual(progress.gold_collected, 5)

    def test_delete_grid(self):
        self.save_raw_board(USER_ID, board_tiles())
        self.assertTrue(grid_service.delete_grid(USER_ID))
        self.assertFalse(grid_service.delete_grid(USER_ID))
        self.assertIsNone(grid_service.get_grid(USER_ID))

    def test_clear_if_complete_is_idempotent(self):
        finished = [dict(t, discovered=True) for t in board_tiles()]
        self.save_raw_board(USER_ID, finished)

        self.assertTrue(grid_service.clear_if_complete(USER_ID))
        self.assertFalse(grid_service.clear_if_complete(USER_ID))
        self.assertIsNone(grid_service.get_grid(USER_ID))

    def test_unfinished_board_is_kept(self):
        self.save_raw_board(USER_ID, board_tiles())
        self.assertFalse(grid_service.clear_if_complete(USER_ID))
        self.assertIsNotNone(grid_service.get_unfinished_grid(USER_ID))

    def test_completed_board_is_not_resumable(self):
        self.save_raw_board(USER_ID, [dict(t, discovered=True) for t in board_tiles()])
        self.assertIsNone(grid_service.get_unfinished_grid(USER_ID))


class TestCreateGame(DatabaseTestCase):

    def test_spends_a_card_and_stores_the_board(self):
        self.seed_player(cards=2)

        progress, cards, error = grid_service.create_game(
            USER_ID, {"C1": 7}, {"E1": "hello"}, rng=random.Random(5)
        )

        self.assertIsNone(error)
        self.assertEqual(cards, 1)
        self.assertEqual(progress.player_position, 13)
        self.assertEqual(progress.gold_collected, 0)
        c1 = next(t for t in progress.tilemap if t.type == "C1")
        self.assertEqual(c1.character_id, 7)
        self.assertEqual(len(grid_service.get_grid(USER_ID).tilemap), 25)

    def test_no_cards(self):
        self.seed_player(cards=0)
        progress, cards, error = grid_service.create_game(USER_ID)
        self.assertIsNone(progress)
        self.assertEqual(error, grid_service.NO_CARDS)
        self.assertIsNone(grid_service.get_grid(USER_ID))

    def test_pick_board_characters_uses_unclaimed_roster(self):
        self.seed_characters(2, claimed=True)
        free = self.seed_characters(5)

        picks = grid_service.pick_board_characters()

        self.assertEqual(set(picks), set(grid.CHARACTER_TILES))
        self.assertTrue({c.characterid for c in picks.values()} <= set(free))
        # Board characters are only reserved, not claimed
        self.assertEqual(len(self.claimed_ids()), 2)


class TestDiscoverTile(DatabaseTestCase):

    def test_gold_tile_pays_and_moves_player(self):
        self.seed_player(gold=0, moves=5)
        self.save_raw_board(USER_ID, board_tiles(overrides={14: {"type": "G3"}}))

        discovery, error = grid_service.discover_tile(USER_ID, 14, rng=random.Random(1))

        self.assertIsNone(error)
        self.assertTrue(6 <= discovery.reward <= 12)
        self.assertEqual(discovery.gold, discovery.reward)
        self.assertEqual(discovery.moves_remaining, 4)
        self.assertEqual(discovery.gold_collected, discovery.reward)

        saved = grid_service.get_grid(USER_ID)
        self.assertEqual(saved.player_position, 14)
        self.assertEqual(grid.get_tile(saved.tilemap, 13).type, grid.CLAIMED_TILE)

    def test_event_tile_returns_its_text(self):
        self.seed_player(moves=5)
        self.save_raw_board(
            USER_ID, board_tiles(overrides={8: {"type": "E2", "eventText": "A voice whispers."}})
        )

        discovery, error = grid_service.discover_tile(USER_ID, 8)

        self.assertEqual(discovery.reward, 10)
        self.assertEqual(discovery.event_text, "A voice whispers.")

    def test_character_tile_claims_the_character(self):
        series_id = self.seed_series()
        (character_id,) = self.seed_characters(1, series_id=series_id)
        self.seed_player(moves=5)
        self.save_raw_board(
            USER_ID, board_tiles(overrides={18: {"type": "C1", "characterId": character_id}})
        )

        discovery, error = grid_service.discover_tile(USER_ID, 18)

        self.assertIsNone(error)
        self.assertEqual(discovery.reward, 20)
        self.assertEqual(discovery.character.characterid, character_id)
        self.assertEqual(discovery.character.series.name, "Arcane Chronicles")
        self.assertEqual(self.collection_ids(), [character_id])
        self.assertEqual(self.stats_row()["cards_collected"], 1)

    def test_character_already_claimed_elsewhere_still_pays(self):
        (character_id,) = self.seed_characters(1, claimed=True)
        self.seed_player(moves=5)
        self.save_raw_board(
            USER_ID, board_tiles(overrides={12: {"type": "C2", "characterId": character_id}})
        )

        discovery, _ = grid_service.discover_tile(USER_ID, 12)

        self.assertIsNone(discovery.character)
        self.assertEqual(discovery.reward, 20)
        self.assertEqual(self.collection_ids(), [])

    def test_discovered_tiles_pay_nothing(self):
        self.seed_player(moves=5)
        self.save_raw_board(
            USER_ID, board_tiles(overrides={14: {"type": "C", "discovered": True}})
        )
        discovery, _ = grid_service.discover_tile(USER_ID, 14)
        self.assertEqual(discovery.reward, 0)
        self.assertEqual(discovery.moves_remaining, 4)

    def test_repeating_a_move_does_not_pay_twice(self):
        self.seed_player(gold=0, moves=5)
        self.save_raw_board(USER_ID, board_tiles(overrides={8: {"type": "E1"}}))

        first, _ = grid_service.discover_tile(USER_ID, 8)
        self.assertEqual(first.reward, 10)

        # The player now stands on tile 8, so the same move is no longer legal
        repeat, error = grid_service.discover_tile(USER_ID, 8)
        self.assertIsNone(repeat)
        self.assertEqual(error, grid_service.NOT_ADJACENT)

        # Stepping back onto the tile just left pays nothing
        back, _ = grid_service.discover_tile(USER_ID, 13)
        self.assertEqual(back.reward, 0)
        self.assertEqual(self.stats_row()["gold"], 10)
        self.assertEqual(self.stats_row()["moves"], 3)

    def test_moves_lock_the_board_row(self):
        with get_session() as session:
            locked = grid_service._grid_row_query(session, USER_ID, lock=True)
            plain = grid_service._grid_row_query(session, USER_ID)
            dialect = postgresql.dialect()
            self.assertIn("FOR UPDATE", str(locked.statement.compile(dialect=dialect)))
            self.assertNotIn("FOR UPDATE", str(plain.statement.compile(dialect=dialect)))

    def test_errors_leave_state_untouched(self):
        self.seed_player(moves=0)
        self.assertEqual(grid_service.discover_tile(USER_ID, 14)[1], grid_service.NO_ACTIVE_GAME)

        self.save_raw_board(USER_ID, board_tiles())
        self.assertEqual(grid_service.discover_tile(USER_ID, 99)[1], grid_service.INVALID_TILE)
        self.assertEqual(grid_service.discover_tile(USER_ID, 1)[1], grid_service.NOT_ADJACENT)
        self.assertEqual(grid_service.discover_tile(USER_ID, 14)[1], grid_service.NOT_ENOUGH_MOVES)
        self.assertEqual(grid_service.get_grid(USER_ID).player_position, 13)

    def test_last_tile_clears_the_board(self):
        self.seed_player(moves=5)
        tiles = [dict(t, discovered=True) for t in board_tiles()]
        tiles[13] = dict(tiles[13], discovered=False)  # tile 14
        self.save_raw_board(USER_ID, tiles, gold_collected=100)

        discovery, _ = grid_service.discover_tile(USER_ID, 14, rng=random.Random(2))

        self.assertTrue(discovery.grid_cleared)
        self.assertEqual(discovery.gold_collected, 100 + discovery.reward)
        self.assertIsNone(grid_service.get_grid(USER_ID))


if __name__ == "__main__":
    unittest.main()
