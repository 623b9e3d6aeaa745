from alert_receiver.models.topic import Topic

__all__ = [
    "Topic",
]
