"""
Named reporting periods used by the attendance overview.
"""
import datetime

from django.utils import timezone

DATE_RANGE_PRESETS = {
    'today': 'Today',
    'yesterday': 'Yesterday',
    'this_week': 'This Week',
    'last_week': 'Last Week',
    'this_month': 'This Month',
    'last_month': 'Last Month',
    'custom': 'Custom Range',
}


def _week_bounds(day):
    # Weeks run Monday to Sunday
    start = day - datetime.timedelta(days=day.weekday())
    return start, start + datetime.timedelta(days=6)


def _month_bounds(day):
    start = day.replace(day=1)
    next_month = (start + datetime.timedelta(days=32)).replace(day=1)
    return start, next_month - datetime.timedelta(days=1)


def get_date_range(preset, start=None, end=None, today=None):
    """
    Resolve a preset to ``{start, end, label}`` (inclusive dates).

    ``custom`` uses the given bounds, defaulting to the last 30 days through
    today. Unknown presets fall back to ``this_week``.
    """
    today = today or timezone.localdate()

    if preset == 'today':
        return {'start': today, 'end': today, 'label': 'Today'}

    if preset == 'yesterday':
        day = today - datetime.timedelta(days=1)
        return {'start': day, 'end': day, 'label': 'Yesterday'}

    if preset == 'last_week':
        first, last = _week_bounds(today - datetime.timedelta(days=7))
        return {'start': first, 'end': last, 'label': 'Last Week'}

    if preset == 'this_month':
        first, last = _month_bounds(today)
        return {'start': first, 'end': last, 'label': 'This Month'}

    if preset == 'last_month':
        first, last = _month_bounds(today.replace(day=1) - datetime.timedelta(days=1))
        return {'start': first, 'end': last, 'label': 'Last Month'}

    if preset == 'custom':
        return {
            'start': start or today - datetime.timedelta(days=30),
            'end': end or today,
            'label': 'Custom Range',
        }

    first, last = _week_bounds(today)
    return {'start': first, 'end': last, 'label': 'This Week'}
