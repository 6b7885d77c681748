"""Building blocks for the hub's own OpenAPI description.

Kept apart from `openapi_builder.py` so the resource registry and shared
fragments can grow without touching the assembly logic.
"""

__all__ = [
    "constants",
    "helpers",
]
