"""Services for driveup: Graph authentication, API access and upload sessions."""
from .api_client import GraphAPIClient, raise_for_graph_error
from .auth import BearerAuth, GraphTokenProvider
from .upload_session import GraphUploadSessionClient

__all__ = [
    "BearerAuth",
    "GraphAPIClient",
    "GraphTokenProvider",
    "GraphUploadSessionClient",
    "raise_for_graph_error",
]
