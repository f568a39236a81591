"""Chronicle: audit-trail recording for entity persistence.

Chronicle observes entity save and delete operations, computes minimal
field-level change sets and persists them as change records that
subscribers may enrich or veto before they commit.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
