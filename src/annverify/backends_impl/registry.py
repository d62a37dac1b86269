from __future__ import annotations

from .annoy import AnnoyBackend
from .base import VectorBackend
from .faiss_ivf import FaissBackend
from .hnswlib import HnswlibBackend


BACKENDS: dict[str, type[VectorBackend]] = {
    FaissBackend.name: FaissBackend,
    HnswlibBackend.name: HnswlibBackend,
    AnnoyBackend.name: AnnoyBackend,
}


def resolve_backend(
    index_type: str,
    metric: str,
    preferred: str | None = None,
) -> tuple[VectorBackend | None, str | None]:
    """Pick an installed backend able to build ``index_type``, or explain why none can."""
    if preferred is not None:
        backend_cls = BACKENDS.get(preferred)
        if backend_cls is None:
            return None, f"unknown backend name: {preferred}"
        candidates = [backend_cls]
    else:
        candidates = list(BACKENDS.values())

    reasons: list[str] = []
    for backend_cls in candidates:
        if not backend_cls.supports(index_type, metric):
            continue
        ok, reason = backend_cls.availability()
        if not ok:
            reasons.append(reason or f"{backend_cls.name} not available")
            continue
        return backend_cls(), None
    if reasons:
        return None, "; ".join(reasons)
    return None, f"no backend implements {index_type} with metric {metric}"


__all__ = ["BACKENDS", "resolve_backend"]
