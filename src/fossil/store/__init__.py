"""Fossil store: entries, similarity, queries, canonical snapshots and traceability.

Architecture::

    Layer 1 -- Files & models
        fsio.py            Atomic writes, byte-exact copies, path locks
        models.py          FossilEntry, EntryCandidate, EntryPatch
        validator.py       validate() collecting every violation
        config.py          StoreConfig (root, dedup threshold, title weight)

    Layer 2 -- Entries
        similarity.py      Token-set overlap scoring and ranking
        repository.py      create (dedup) / get / update / delete
        query.py           QueryFilter -> Page
        reports.py         statistics, context summary, exports
        snapshots.py       Copies of the entries tree

    Layer 3 -- Canonical
        vcs.py             Vcs protocol, GitCli, StaticVcs
        schemas.py         Category payload models
        canonical.py       Archive-then-overwrite, aggregate context.yml
        traceability.py    Fossil-path changes correlated with git

    Facade
        service.py         FossilStore
"""

from fossil.store.canonical import CanonicalManager, transversal_value
from fossil.store.config import StoreConfig
from fossil.store.models import EntryCandidate, EntryPatch, EntrySource, EntryType, FossilEntry, VersionSnapshot
from fossil.store.query import DateRange, Page, QueryEngine, QueryFilter
from fossil.store.repository import Created, Deduplicated, FossilRepository
from fossil.store.service import FossilStore
from fossil.store.similarity import SimilarityEngine, SimilarityMatch
from fossil.store.traceability import TraceabilityRecord, TraceabilityTracker
from fossil.store.validator import validate
from fossil.store.vcs import GitCli, StaticVcs, Vcs

__all__ = [
    "CanonicalManager",
    "Created",
    "DateRange",
    "Deduplicated",
    "EntryCandidate",
    "EntryPatch",
    "EntrySource",
    "EntryType",
    "FossilEntry",
    "FossilRepository",
    "FossilStore",
    "GitCli",
    "Page",
    "QueryEngine",
    "QueryFilter",
    "SimilarityEngine",
    "SimilarityMatch",
    "StaticVcs",
    "StoreConfig",
    "TraceabilityRecord",
    "TraceabilityTracker",
    "Vcs",
    "VersionSnapshot",
    "transversal_value",
    "validate",
]
