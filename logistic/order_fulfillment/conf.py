"""
Engine settings, read from ``settings.ORDER_FULFILLMENT`` with defaults.
"""

from django.conf import settings

DEFAULTS = {
    'ISSUE_SLA_HOURS': 24,
    'MIN_REASON_LENGTH': 5,
    'MIN_NOTE_LENGTH': 5,
    'COURIER_ROLES': ['driver'],
}


def get_setting(name: str):
    overrides = getattr(settings, 'ORDER_FULFILLMENT', {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
