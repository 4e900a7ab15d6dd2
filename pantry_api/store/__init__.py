"""
Document Store Package

This package contains the document store interface and its backends.
"""

from pantry_api.store.base import DocumentStore
from pantry_api.store.cosmos import CosmosDocumentStore
from pantry_api.store.memory import InMemoryDocumentStore

__all__ = ['DocumentStore', 'CosmosDocumentStore', 'InMemoryDocumentStore']
