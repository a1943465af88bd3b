"""Use-case / operations layer.

Crop editing, the screen state machine and the generation orchestrator.
Nothing here touches widgets; the UI talks to these through the backend.
"""
