"""Real-time delivery over WebSockets.

Components:
    - ConnectionRegistry: live sockets, bound users, active chat partners.
    - LivenessSupervisor: heartbeat ping/evict loop.
    - DeliveryRouter: persist-then-push of messages and notifications.
    - ReadStateTracker: read transitions and read receipts.
    - UnreadAggregator: unread counts per counterpart.
"""
