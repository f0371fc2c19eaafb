"""
Prefect flows.

Flows:
- nearby: locate, sync the H3 cells around the position, render the map

Usage (local):
    python -m biodiversity_nearby.flows.nearby

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    prefect deployment run 'sync-nearby/default'
"""
