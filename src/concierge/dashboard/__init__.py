"""HTTP dashboard exposing ``settings.json`` and the DM log for external editing."""
