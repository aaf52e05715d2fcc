"""Document import/export and local storage of market and portfolio state."""
from .document import (
    DocumentError,
    decode_document,
    dumps,
    encode_document,
    export_to_file,
    import_from_file,
    loads,
)
from .snapshot_store import SnapshotStore

__all__ = [
    'DocumentError',
    'decode_document',
    'dumps',
    'encode_document',
    'export_to_file',
    'import_from_file',
    'loads',
    'SnapshotStore'
]
