from .blob import LocalBlobStore
from .catalog import CatalogStore
from .session_log import SessionLogStore
from .outbox import SessionOutbox

__all__ = ["LocalBlobStore", "CatalogStore", "SessionLogStore", "SessionOutbox"]
