from rest_framework.settings import api_settings
from rest_framework.throttling import ScopedRateThrottle


class ActionScopedRateThrottle(ScopedRateThrottle):
    """
    Scoped throttle keyed by the view action.

    Views declare ``throttle_scope_map = {action: scope}``; actions without
    an entry are not throttled. Rates are looked up on every request and the
    resolved rate is part of the cache key, so overriding
    DEFAULT_THROTTLE_RATES (e.g. in tests) starts a fresh bucket.
    """
    def allow_request(self, request, view):
        scope_map = getattr(view, "throttle_scope_map", None) or {}
        scope = scope_map.get(getattr(view, "action", None))
        if scope:
            view.throttle_scope = scope
        elif scope_map:
            return True
        return super().allow_request(request, view)

    def get_rate(self):
        self.THROTTLE_RATES = api_settings.DEFAULT_THROTTLE_RATES
        return super().get_rate()

    def get_cache_key(self, request, view):
        key = super().get_cache_key(request, view)
        if key is None:
            return None
        return f"{key}:{self.get_rate() or 'none'}"
