"""
Discord cogs for Concierge.

- **message_listener.py**: Forwards every ``on_message`` event to the
  dispatch pipeline.
- **events_listener.py**: Applies presence and avatar on ready and handles
  member joins.
"""
