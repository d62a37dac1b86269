from .annoy import AnnoyBackend
from .base import VectorBackend
from .faiss_ivf import FaissBackend
from .hnswlib import HnswlibBackend
from .registry import BACKENDS, resolve_backend

__all__ = [
    "AnnoyBackend",
    "BACKENDS",
    "FaissBackend",
    "HnswlibBackend",
    "VectorBackend",
    "resolve_backend",
]
