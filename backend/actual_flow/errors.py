"""Importer error types.

The mapping and duplicate detection core never raises; these cover the
orchestration around it (configuration, connectivity, persistence).
"""


class ImporterError(Exception):
    """Base class for errors raised while running an import."""


class NoMappingsError(ImporterError):
    """No account mappings are configured."""


class ConnectionFailedError(ImporterError):
    """One of the ledgers could not be reached."""


class NothingMappedError(ImporterError):
    """Transactions were fetched but none belong to a mapped account."""


class NotFoundError(ImporterError):
    """Requested record does not exist."""


class ConflictError(ImporterError):
    """Uniqueness violation, such as mapping the same source account twice."""


def mapping_not_found(mapping_id: int) -> str:
    """Return message for a missing account mapping."""
    return f"Account mapping {mapping_id} not found"


def mapping_already_exists(lunch_flow_account_id: int) -> str:
    """Return message for a source account that is already mapped."""
    return f"Lunch Flow account {lunch_flow_account_id} is already mapped"
