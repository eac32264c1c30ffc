"""User directory module.

Holds the minimal user record the messaging core depends on: display name,
ban flag, and the block list consulted before a message is accepted.
"""
