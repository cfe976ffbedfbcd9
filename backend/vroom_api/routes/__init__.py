# Routes package init
"""
Vroom Route API — Routes Package
=================================

Route Inventory:
    - route.py:   GET /route    (run VROOM for a list of locations)
    - health.py:  GET /health   (service and binary status)

Routes stay thin: they read query parameters, call VroomService, and return
its result. Error formatting lives in the global handlers in main.py.
"""
