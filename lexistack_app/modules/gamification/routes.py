from flask import jsonify, request
from flask_login import current_user, login_required

from lexistack_app.core.error_handlers import ValidationError

from . import gamification_api_bp, interface
from .services.leaderboard_service import PERIODS


def _streak_payload(dto) -> dict:
    return {
        'streakDays': dto.streak_days,
        'maxStreak': dto.max_streak,
        'lastActiveDate': dto.last_active_date,
    }


@gamification_api_bp.route('/activity', methods=['POST'])
@login_required
def record_activity_api():
    """Record today as active; only the first call of the day moves the streak and grants XP."""
    result = interface.record_activity(current_user.username)
    return jsonify({
        'success': True,
        **_streak_payload(result),
        'xpGranted': result.xp_granted,
    })


@gamification_api_bp.route('/streak', methods=['GET'])
@login_required
def get_streak_api():
    return jsonify({'success': True, **_streak_payload(interface.get_streak(current_user.username))})


@gamification_api_bp.route('/leaderboard', methods=['GET'])
@login_required
def get_leaderboard_api():
    """XP leaderboard for the day, the week or all time."""
    period = request.args.get('period', 'week')
    if period not in PERIODS:
        raise ValidationError('Unknown period', errors={'period': list(PERIODS)})
    limit = request.args.get('limit', type=int)

    data = interface.get_leaderboard(period, limit)
    for item in data:
        item['isCurrent'] = (item.get('username') == current_user.username)

    return jsonify({
        'success': True,
        'leaderboard': data,
        'period': period,
        'level': interface.get_level(current_user.total_xp or 0),
    })
