"""Batch jobs over the asset collection."""

from aco.jobs.backfill import BackfillRunner, BackfillSummary

__all__ = ["BackfillRunner", "BackfillSummary"]
