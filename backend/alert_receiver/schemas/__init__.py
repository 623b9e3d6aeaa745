from alert_receiver.schemas.alert import (
    ActiveAlert,
    ActiveAlertStatus,
    AlertCounts,
    ReceiverConfig,
    ReconcileOptions,
    StoredAlert,
)

__all__ = [
    "ActiveAlert",
    "ActiveAlertStatus",
    "AlertCounts",
    "ReceiverConfig",
    "ReconcileOptions",
    "StoredAlert",
]
