from .envelope_builder import (
    ENDPOINTS,
    FLAGS_OK,
    EnvelopeKind,
    build_envelope,
    build_error_envelope,
)

__all__ = [
    "ENDPOINTS",
    "FLAGS_OK",
    "EnvelopeKind",
    "build_envelope",
    "build_error_envelope",
]
