"""
Configuration management for Concierge.

- **bot_settings.py**: Immutable ``Settings`` loaded once from the
  dashboard-owned ``settings.json`` (presence, welcome message, auto-role,
  channel keywords, custom commands). Load failures are fatal.

- **app_configuration.py**: File-locked YAML loader for runtime knobs
  (command prefix, data file paths, AI backend, dashboard address). Falls
  back to defaults on a missing or malformed file.

- **ai_settings.py**: Typed accessors for the ``ai_settings`` block.
"""
