"""
API routes.

- addon: manifest, catalog, meta and stream resources (unversioned addon paths)
- streams: plain stream link listing per sport
- sync: sync status and manual trigger
"""
