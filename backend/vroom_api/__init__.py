"""
Vroom Route API — Application Package Initializer
==================================================

What: Marks the `vroom_api` directory as a Python package.
Who:  Used by uvicorn (`vroom_api.main:app`), pytest, and the `vroom-api` script.

Architecture Note:
    The service is a thin HTTP shell around the VROOM command-line binary:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← query params in, JSON out
    ├─────────────────────────────────────┤
    │       VroomService (Validation)     │  ← checks binary + locations, builds argv
    ├─────────────────────────────────────┤
    │     CommandRunner (Subprocess)      │  ← spawns VROOM, captures merged output
    └─────────────────────────────────────┘

    Routes never touch processes directly, and the runner knows nothing about
    routing. Each layer can be tested on its own.
"""

__version__ = "1.0.0"
