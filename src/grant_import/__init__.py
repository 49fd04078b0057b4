from ._version import __version__
from .config import ImportConfig
from .importer import import_file, import_workbook
from .store import FrappePersistenceStore, InMemoryPersistenceStore

__all__ = [
    "__version__",
    "ImportConfig",
    "import_file",
    "import_workbook",
    "FrappePersistenceStore",
    "InMemoryPersistenceStore",
]
