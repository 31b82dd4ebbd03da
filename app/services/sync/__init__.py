"""
Catalog sync layer: fetch -> transform -> publish.

Key components:
- Transformer: upstream detail -> catalog entry, meta and stream documents
- Publishers: in-memory table or static JSON files, replaced per generation
- Orchestrator: runs sync cycles across all configured sports
"""
