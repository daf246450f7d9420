from diff_digest.client.cache import CACHE_STORAGE_KEY, NotesCache
from diff_digest.client.demux import NoteStreamDemultiplexer
from diff_digest.client.session import NotesSession, create_session
from diff_digest.client.transport import NotesApiClient, NotesTransport

__all__ = [
    "CACHE_STORAGE_KEY",
    "NotesCache",
    "NoteStreamDemultiplexer",
    "NotesSession",
    "NotesApiClient",
    "NotesTransport",
    "create_session",
]
