"""
Tests for the playerstats ledger in charasphere.utils.services.player_service.
"""

import datetime
import unittest

from db_helpers import USER_ID, DatabaseTestCase

from charasphere.utils.services import player_service


def _utc(*args):
    return datetime.datetime(*args, tzinfo=datetime.timezone.utc)


class TestComputeRefreshedMoves(unittest.TestCase):

    def setUp(self):
        self.last = _utc(2024, 12, 1, 12, 0, 0)

    def test_less_than_a_minute_adds_nothing(self):
        now = self.last + datetime.timedelta(seconds=59)
        self.assertEqual(player_service.compute_refreshed_moves(5, self.last, now), 5)

    def test_each_whole_minute_adds_ten(self):
        now = self.last + datetime.timedelta(minutes=2, seconds=30)
        self.assertEqual(player_service.compute_refreshed_moves(3, self.last, now), 23)

    def test_refresh_is_capped(self):
        now = self.last + datetime.timedelta(hours=5)
        self.assertEqual(player_service.compute_refreshed_moves(0, self.last, now), 30)

    def test_balance_above_cap_is_brought_down_to_cap(self):
        now = self.last + datetime.timedelta(minutes=10)
        self.assertEqual(player_service.compute_refreshed_moves(45, self.last, now), 30)

    def test_balance_above_cap_is_capped_before_a_minute_passes(self):
        now = self.last + datetime.timedelta(seconds=20)
        self.assertEqual(player_service.compute_refreshed_moves(45, self.last, now), 30)

    def test_naive_timestamps_are_treated_as_utc(self):
        naive = datetime.datetime(2024, 12, 1, 12, 0, 0)
        now = self.last + datetime.timedelta(minutes=1)
        self.assertEqual(player_service.compute_refreshed_moves(0, naive, now), 10)


class TestPlayerStats(DatabaseTestCase):

    def test_missing_player_has_no_stats(self):
        self.assertIsNone(player_service.get_player_stats(USER_ID))
        self.assertFalse(player_service.player_exists(USER_ID))

    def test_ensure_creates_default_row_once(self):
        stats = player_service.ensure_player_stats(USER_ID, "player@example.com")
        self.assertEqual((stats.gold, stats.moves, stats.cards), (0, 30, 0))
        self.assertEqual(stats.email, "player@example.com")

        again = player_service.ensure_player_stats(USER_ID)
        self.assertEqual(again.email, "player@example.com")
        self.assertTrue(player_service.player_exists(USER_ID))


class TestMoves(DatabaseTestCase):

    def test_refresh_writes_only_when_moves_change(self):
        last = _utc(2024, 12, 1, 12, 0, 0)
        self.seed_player(moves=30, last_move_refresh=last)

        moves, refreshed_at = player_service.refresh_moves(USER_ID, now=last + datetime.timedelta(minutes=3))
        self.assertEqual(moves, 30)
        self.assertEqual(refreshed_at, last)

    def test_refresh_adds_moves_and_moves_the_timer(self):
        last = _utc(2024, 12, 1, 12, 0, 0)
        now = last + datetime.timedelta(minutes=1, seconds=5)
        self.seed_player(moves=4, last_move_refresh=last)

        moves, refreshed_at = player_service.refresh_moves(USER_ID, now=now)
        self.assertEqual(moves, 14)
        self.assertEqual(refreshed_at, now)
        self.assertEqual(self.stats_row()["moves"], 14)

    def test_refresh_never_exceeds_cap(self):
        last = _utc(2024, 12, 1, 12, 0, 0)
        self.seed_player(moves=25, last_move_refresh=last)
        moves, _ = player_service.refresh_moves(USER_ID, now=last + datetime.timedelta(minutes=9))
        self.assertLessEqual(moves, 30)

    def test_refresh_clamps_balance_above_cap(self):
        last = _utc(2024, 12, 1, 12, 0, 0)
        now = last + datetime.timedelta(minutes=5)
        self.seed_player(moves=45, last_move_refresh=last)

        moves, refreshed_at = player_service.refresh_moves(USER_ID, now=now)
        self.assertEqual(moves, 30)
        self.assertEqual(refreshed_at, now)
        self.assertEqual(self.stats_row()["moves"], 30)

    def test_use_moves_spends_and_refuses_overdraw(self):
        self.seed_player(moves=5)
        self.assertEqual(player_service.use_moves(USER_ID, 3), 2)
        self.assertIsNone(player_service.use_moves(USER_ID, 3))
        self.assertEqual(self.stats_row()["moves"], 2)


class TestBuyCards(DatabaseTestCase):

    def test_buying_costs_card_price_times_quantity(self):
        self.seed_player(gold=650, cards=1)
        success, stats, cost = player_service.buy_cards(USER_ID, 3)

        self.assertTrue(success)
        self.assertEqual(cost, 600)
        self.assertEqual((stats.gold, stats.cards), (50, 4))

    def test_short_gold_fails_without_changes(self):
        self.seed_player(gold=399, cards=2)
        success, stats, cost = player_service.buy_cards(USER_ID, 2)

        self.assertFalse(success)
        self.assertEqual(cost, 400)
        self.assertEqual((stats.gold, stats.cards), (399, 2))
        self.assertEqual(self.stats_row()["gold"], 399)


class TestSavePlayerState(DatabaseTestCase):

    def test_values_are_clamped(self):
        self.seed_player(gold=10, moves=10)
        stats = player_service.save_player_state(USER_ID, moves=99, gold=-5)
        self.assertEqual((stats.moves, stats.gold), (30, 0))

    def test_upsert_creates_missing_row(self):
        refreshed = _utc(2024, 12, 2, 8, 30, 0)
        stats = player_service.save_player_state(USER_ID, 12, 300, refreshed)
        self.assertEqual((stats.moves, stats.gold), (12, 300))
        self.assertEqual(stats.last_move_refresh, refreshed)


if __name__ == "__main__":
    unittest.main()
