import threading


class FeatureStatus:
    """
    Named "is hooked" markers read by whatever status surface the host shows.
    Counts how many hooks back each feature.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._hooks: dict[str, int] = {}

    def set_hooked(self, feature: str) -> None:
        with self._lock:
            self._hooks[feature] = self._hooks.get(feature, 0) + 1

    def is_hooked(self, feature: str) -> bool:
        with self._lock:
            return self._hooks.get(feature, 0) > 0

    def hook_count(self, feature: str) -> int:
        with self._lock:
            return self._hooks.get(feature, 0)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._hooks)
