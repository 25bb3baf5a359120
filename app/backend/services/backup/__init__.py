"""Database backup engine.

This package provides:
- Logical MySQL dumps rendered as replayable SQL documents
- Zip packaging of dumps
- Delivery of archives and status reports to channels (Discord, local)
- Orchestration of a sequential run over the configured databases
"""
