"""
Namespaced key-value storage over the settings table.

Values are stored as JSON text. Keys are always built from one of the fixed
prefixes below so templates, recents and per-user preferences never collide.
"""
import json
import logging

from django.db import transaction

from .models import Setting

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATE_PREFIX = 'message_template:'
SHIPMENT_TEMPLATE_PREFIX = 'shipment_template:'
SHIPMENT_RECENT_PREFIX = 'shipment_template_recent:'
PREFS_PREFIX = 'prefs:'

MAX_RECENT_SHIPMENTS = 5

# Preference keys with their defaults
DEFAULT_PREFERENCES = {
    'balance_visible': True,
    'selected_season_id': None,
}


class KeyValueStore:
    """JSON values under a fixed key prefix"""

    def __init__(self, prefix):
        self.prefix = prefix

    def _key(self, name):
        return f"{self.prefix}{name}"

    def get(self, name, default=None):
        setting = Setting.objects.filter(key=self._key(name)).first()
        if setting is None:
            return default
        try:
            return json.loads(setting.value)
        except ValueError:
            logger.warning(f"Setting {setting.key} holds non-JSON text; returning raw value")
            return setting.value

    def set(self, name, value, description=''):
        Setting.objects.update_or_create(
            key=self._key(name),
            defaults={'value': json.dumps(value), 'description': description},
        )
        return value

    def delete(self, name):
        deleted, _ = Setting.objects.filter(key=self._key(name)).delete()
        return deleted > 0

    def items(self):
        """All (name, value) pairs under this prefix, sorted by name"""
        result = []
        for setting in Setting.objects.filter(key__startswith=self.prefix).order_by('key'):
            try:
                value = json.loads(setting.value)
            except ValueError:
                value = setting.value
            result.append((setting.key[len(self.prefix):], value))
        return result


message_templates = KeyValueStore(MESSAGE_TEMPLATE_PREFIX)
shipment_templates = KeyValueStore(SHIPMENT_TEMPLATE_PREFIX)


def user_preferences(user_id):
    return KeyValueStore(f"{PREFS_PREFIX}{user_id}:")


def get_preferences(user_id):
    """Stored preferences merged over the defaults"""
    prefs = dict(DEFAULT_PREFERENCES)
    prefs.update(dict(user_preferences(user_id).items()))
    return prefs


def update_preferences(user_id, values):
    store = user_preferences(user_id)
    for name, value in values.items():
        if name not in DEFAULT_PREFERENCES:
            continue
        store.set(name, value)
    return get_preferences(user_id)


def recent_shipments(user_id):
    return KeyValueStore(SHIPMENT_RECENT_PREFIX).get(str(user_id), [])


def push_recent_shipment(user_id, payload):
    """Remember a quick-shipment form payload; newest first, capped, no duplicates"""
    store = KeyValueStore(SHIPMENT_RECENT_PREFIX)
    with transaction.atomic():
        recents = [r for r in store.get(str(user_id), []) if r != payload]
        recents.insert(0, payload)
        recents = recents[:MAX_RECENT_SHIPMENTS]
        store.set(str(user_id), recents)
    return recents
