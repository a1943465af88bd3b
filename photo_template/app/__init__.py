"""Widget-facing application facade and state objects.

- Single command entry: backend.dispatch(cmd, payload)
- UI binding via state QObjects (backend.view / backend.editor / backend.generation)
- Python→UI notifications via backend.event / backend.taskEvent
"""
