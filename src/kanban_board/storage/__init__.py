from .file_repos import FileProjectRepository, FileTaskRepository
from .interfaces import GatewayFailure, PersistenceGateway
from .local_gateway import LocalGateway
from .remote_gateway import RemoteGateway

__all__ = [
    "PersistenceGateway",
    "GatewayFailure",
    "LocalGateway",
    "RemoteGateway",
    "FileProjectRepository",
    "FileTaskRepository",
]
