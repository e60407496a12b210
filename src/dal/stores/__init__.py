"""Record stores for the ATR portal tables.

Each store receives a ``HybridDatabase`` and names its table as the routing
target, so statements land on the owning backend or its SQLite fallback.
"""

from dal.stores.accounts import AccountStore
from dal.stores.documents import AtrDocumentStore, InferredReportStore
from dal.stores.reference_data import FeatureStore, SiteStore, VideoLinkStore
from dal.stores.uploaded_atr import UploadedAtrStore
from dal.stores.violations import ViolationStore

__all__ = [
    "AccountStore",
    "AtrDocumentStore",
    "FeatureStore",
    "InferredReportStore",
    "SiteStore",
    "UploadedAtrStore",
    "VideoLinkStore",
    "ViolationStore",
]
