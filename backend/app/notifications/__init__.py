"""User notifications (alerts shown in the notification surface)."""
