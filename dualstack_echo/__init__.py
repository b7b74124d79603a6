from .addresses import HostInfo, Lookups, describe, resolve
from .ports import find_available_port, is_available, open_listener
from .server import BindError, bind_pair, handle_client, serve, serve_forever

__all__ = [
    'BindError',
    'HostInfo',
    'Lookups',
    'bind_pair',
    'describe',
    'find_available_port',
    'handle_client',
    'is_available',
    'open_listener',
    'resolve',
    'serve',
    'serve_forever',
]
