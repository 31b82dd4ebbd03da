"""
Services for the catalog sync flow.

- upstream: PPV API client
- sync: transformer, publishers and the sync orchestrator
- addon: addon manifest
"""
