# Services package init
"""
Vroom Route API — Services Layer
=================================

Service Inventory:
    - CommandRunner (abstract): Interface for running an external process
    - SubprocessRunner: asyncio-based implementation with merged stdout/stderr
    - VroomService: Validates requests, builds the VROOM command, parses output

VroomService depends on CommandRunner rather than on subprocesses directly,
so it can be tested with a recording runner and no real binary.
"""
