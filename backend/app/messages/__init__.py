"""Direct messages between users.

The store persists messages; sending, read-marking and unread counting are
coordinated with live connections by app.realtime.
"""
