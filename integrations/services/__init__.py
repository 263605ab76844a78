# Remote store client
from .remote_store import RemoteRecordStore, RemoteUnavailable

__all__ = ['RemoteRecordStore', 'RemoteUnavailable']
