"""Async data-service layer for the MindSpace peer-support forum."""
from mindspace.services.forum_client import ForumClient

__all__ = ["ForumClient"]
