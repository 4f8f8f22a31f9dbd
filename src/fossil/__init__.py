"""
fossil: a deduplicating, queryable record store with canonical snapshots.

- ``fossil.core``: errors, Result, logging, settings, timestamps, hashing
- ``fossil.store``: entries, similarity, queries, canonical snapshots,
  traceability and reports, wired together by ``FossilStore``
- ``fossil.cli``: the ``fossil`` command
"""

__version__ = "0.1.0"
