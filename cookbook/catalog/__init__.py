"""
Recipe catalog search and fridge matching engine.

Responsibilities:
- Normalize raw search filters and fridge match policies.
- Filter an immutable recipe snapshot down to visible, matching candidates.
- Score recipes against the ingredients a user owns.
- Sort and paginate results deterministically for API serialisation.
- Keep derived rating aggregates in sync with the comments that carry them.
"""
