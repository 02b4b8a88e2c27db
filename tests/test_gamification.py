"""
Tests for Gamification - Streaks, rewards and levels

Tests cover:
- Active-day transitions (first day, same day, next day, gap)
- max_streak never decreasing
- XP to level conversion
- Reward lookup and the XP ledger
- Concurrent record_activity calls for one learner
"""

import threading
from datetime import date, timedelta

import pytest

from lexistack_app import db
from lexistack_app.core.signals import activity_recorded
from lexistack_app.models import User
from lexistack_app.modules.gamification import interface as gamification
from lexistack_app.modules.gamification.logics.level_logic import level_from_xp, xp_to_reach_level
from lexistack_app.modules.gamification.logics.streak_logic import StreakState, advance_streak
from lexistack_app.modules.gamification.models import Reward, ScoreLog, UserActiveDay
from lexistack_app.modules.gamification.services.leaderboard_service import LeaderboardService
from lexistack_app.modules.gamification.services.reward_service import RewardService
from lexistack_app.modules.gamification.services.streak_service import StreakService

D = date(2024, 3, 1)


class TestStreakLogic:
    """Pure state machine."""

    def test_first_activity_starts_at_one(self):
        transition = advance_streak(None, D)
        assert transition.changed is True
        assert transition.state == StreakState(D, 1, 1)

    def test_same_day_is_noop(self):
        prev = StreakState(D, 3, 5)
        transition = advance_streak(prev, D)
        assert transition.changed is False
        assert transition.state is prev

    def test_consecutive_day_increments(self):
        transition = advance_streak(StreakState(D, 3, 3), D + timedelta(days=1))
        assert transition.state.streak_days == 4
        assert transition.state.max_streak == 4

    def test_gap_resets_but_keeps_max(self):
        transition = advance_streak(StreakState(D, 6, 6), D + timedelta(days=2))
        assert transition.state.streak_days == 1
        assert transition.state.max_streak == 6


class TestLevels:

    def test_thresholds(self):
        assert xp_to_reach_level(1) == 0
        assert xp_to_reach_level(2) == 80
        assert xp_to_reach_level(3) == 168.5

    def test_level_from_xp(self):
        assert level_from_xp(0) == 1
        assert level_from_xp(79) == 1
        assert level_from_xp(80) == 2
        assert level_from_xp(170) == 3
        assert level_from_xp(None) == 1
        assert level_from_xp(10 ** 9) == 100


class TestStreakService:

    def test_ana_scenario(self, app):
        """First call, same day, next day, then a gap."""
        first = StreakService.record_activity('ana', today=D)
        assert first['streakDays'] == 1
        assert first['xpGranted'] == 10

        again = StreakService.record_activity('ana', today=D)
        assert again['streakDays'] == 1
        assert again['xpGranted'] == 0

        next_day = StreakService.record_activity('ana', today=D + timedelta(days=1))
        assert next_day['streakDays'] == 2

        after_gap = StreakService.record_activity('ana', today=D + timedelta(days=5))
        assert after_gap['streakDays'] == 1
        assert after_gap['maxStreak'] == 2
        assert after_gap['lastActiveDate'] == (D + timedelta(days=5)).isoformat()

    def test_empty_username_rejected(self, app):
        with pytest.raises(ValueError):
            StreakService.record_activity('  ', today=D)

    def test_get_active_days_defaults(self, app):
        assert StreakService.get_active_days('nobody') == {
            'lastActiveDate': None, 'streakDays': 0, 'maxStreak': 0,
        }

    def test_signal_only_on_change(self, app):
        received = []

        def listener(sender, **kwargs):
            received.append(kwargs)

        activity_recorded.connect(listener)
        try:
            StreakService.record_activity('carol', today=D)
            StreakService.record_activity('carol', today=D)
        finally:
            activity_recorded.disconnect(listener)

        assert len(received) == 1
        assert received[0]['username'] == 'carol'
        assert received[0]['streak_days'] == 1

    def test_reward_failure_keeps_streak(self, app, monkeypatch):
        def broken(_key):
            raise RuntimeError('reward table unavailable')

        monkeypatch.setattr(RewardService, 'get_xp', staticmethod(broken))
        result = StreakService.record_activity('dave', today=D)

        assert result['streakDays'] == 1
        assert result['xpGranted'] == 0
        assert db.session.get(UserActiveDay, 'dave').streak_days == 1

    def test_interface_returns_dto(self, app):
        dto = gamification.record_activity('erin', today=D)
        assert dto.streak_days == 1
        assert dto.xp_granted == 10
        assert gamification.get_streak('erin').max_streak == 1


class TestRewards:

    def test_default_reward_is_seeded_once(self, app):
        RewardService.seed_default_rewards()
        assert Reward.query.filter_by(reward_key='active_day').count() == 1
        assert RewardService.get_xp('active_day') == 10

    def test_unconfigured_or_bad_reward_gives_zero(self, app):
        db.session.add(Reward(reward_key='weird', config={'xp': 'lots'}))
        db.session.commit()
        assert RewardService.get_xp('missing') == 0
        assert RewardService.get_xp('weird') == 0

    def test_activity_awards_xp_through_listener(self, app):
        user = User(username='ana')
        db.session.add(user)
        db.session.commit()

        StreakService.record_activity('ana', today=D)

        logs = ScoreLog.query.filter_by(username='ana').all()
        assert [(log.amount, log.reason) for log in logs] == [(10, 'ACTIVE_DAY')]
        assert db.session.get(User, user.user_id).total_xp == 10


class TestLeaderboard:

    def test_orders_by_period_xp(self, app):
        db.session.add_all([User(username='ana', total_xp=500), User(username='bob', total_xp=50)])
        db.session.commit()
        RewardService.award_xp('ana', 30, 'TEST')
        RewardService.award_xp('bob', 40, 'TEST')
        RewardService.award_xp('bob', 5, 'TEST')

        board = LeaderboardService.get_leaderboard('all')
        assert [(row['rank'], row['username'], row['xp']) for row in board] == [(1, 'bob', 45), (2, 'ana', 30)]
        assert board[1]['level'] == level_from_xp(530)

    def test_period_excludes_old_scores(self, app):
        from datetime import datetime

        db.session.add(ScoreLog(username='old', amount=99, reason='TEST', created_at=datetime(2020, 1, 1)))
        db.session.commit()
        RewardService.award_xp('fresh', 1, 'TEST')

        names = [row['username'] for row in LeaderboardService.get_leaderboard('week')]
        assert names == ['fresh']
        assert [row['username'] for row in LeaderboardService.get_leaderboard('all')] == ['old', 'fresh']

    def test_limit_is_clamped(self, app):
        for i in range(3):
            RewardService.award_xp(f'user{i}', i + 1, 'TEST')
        assert len(LeaderboardService.get_leaderboard('all', limit=0)) == 1
        assert len(LeaderboardService.get_leaderboard('all', limit='x')) == 3


class TestConcurrentActivity:

    def test_simultaneous_first_calls_create_one_streak(self, file_app):
        """N threads racing on a new learner end with exactly one row at streak 1."""
        results = []
        errors = []
        barrier = threading.Barrier(4)

        def worker():
            with file_app.app_context():
                try:
                    barrier.wait()
                    results.append(StreakService.record_activity('ana', today=D))
                except Exception as e:  # surfaced by the assertion below
                    errors.append(e)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert [r['streakDays'] for r in results] == [1, 1, 1, 1]
        assert sum(r['xpGranted'] for r in results) == 10
        assert UserActiveDay.query.filter_by(username='ana').count() == 1
        assert ScoreLog.query.filter_by(username='ana').count() == 1
