from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import Callable, Iterable

import structlog

from scopehealth.core.models import Alert, Severity

logger = structlog.get_logger(__name__)

AlertCallback = Callable[[Alert], None]


@dataclass(frozen=True)
class _Subscription:
    callback: AlertCallback
    min_severity: Severity | None

    def admits(self, alert: Alert) -> bool:
        return self.min_severity is None or alert.severity.rank >= self.min_severity.rank


class AlertSink:
    """
    Synchronous observer registry for newly raised alerts.

    `subscribe` hands back an integer token; tokens are never reused, so two
    subscribers can never collide on a key.
    """

    def __init__(self) -> None:
        self._subs: dict[int, _Subscription] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._subs)

    def subscribe(self, callback: AlertCallback, min_severity: Severity | str | None = None) -> int:
        if min_severity is not None:
            min_severity = Severity(min_severity)
        with self._lock:
            token = next(self._tokens)
            self._subs[token] = _Subscription(callback=callback, min_severity=min_severity)
        return token

    def unsubscribe(self, token: int) -> bool:
        with self._lock:
            return self._subs.pop(token, None) is not None

    def dispatch(self, alerts: Iterable[Alert]) -> int:
        """
        Deliver each unacknowledged alert to every admitting subscriber.

        A failing callback is logged and skipped. Returns the number of
        successful deliveries.
        """
        with self._lock:
            subs = list(self._subs.items())

        delivered = 0
        for alert in alerts:
            if alert.acknowledged:
                continue
            for token, sub in subs:
                if not sub.admits(alert):
                    continue
                try:
                    sub.callback(alert)
                    delivered += 1
                except Exception:
                    logger.exception(
                        "alert_callback_failed",
                        token=token,
                        component_id=alert.component_id,
                        alert_type=alert.type.value,
                    )
        return delivered
