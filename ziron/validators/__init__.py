from .notification import NotificationPayload, validate_notification_payload

__all__ = ["NotificationPayload", "validate_notification_payload"]
