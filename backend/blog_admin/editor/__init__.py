"""
Admin editor client

Async API client plus the post editor state machine used by admin tooling.
"""

from .client import ApiError, PostsApiClient
from .editor import PostEditor
from .state import EditorState, FormPhase, InvalidTransition, NoImage, StoredImage, Uploading

__all__ = [
    "ApiError",
    "PostsApiClient",
    "PostEditor",
    "EditorState",
    "FormPhase",
    "InvalidTransition",
    "NoImage",
    "StoredImage",
    "Uploading",
]
