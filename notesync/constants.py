from enum import StrEnum


class SyncStatus(StrEnum):
    SYNCED = "synced"
    SYNCING = "syncing"
    UNSYNCED = "unsynced"
    ERROR = "error"


# Placeholder title for notes created without one
DEFAULT_NOTE_TITLE = "Untitled Note"
