"""Process-wide initialization.

Checks once per process that the crypto and XML libraries provide what the
pipeline needs (SHA-512, RSA PKCS#1 v1.5, Canonical XML 1.0) and records
their versions. Safe to call from any thread any number of times: the first
caller does the work, later callers get the same RuntimeInfo.
"""

import threading
from dataclasses import dataclass

import cryptography
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends.openssl import backend as openssl_backend
from cryptography.hazmat.primitives import hashes
from lxml import etree

from soapsig.core.logging import get_logger
from soapsig.errors import UnsupportedAlgorithmError

logger = get_logger(__name__)

STAGE_STARTUP = "startup"


@dataclass(frozen=True)
class RuntimeInfo:
    """Versions of the libraries backing the pipeline."""
    cryptography_version: str
    openssl_version: str
    lxml_version: str
    libxml2_version: str

    def to_dict(self) -> dict:
        return {
            "cryptography_version": self.cryptography_version,
            "openssl_version": self.openssl_version,
            "lxml_version": self.lxml_version,
            "libxml2_version": self.libxml2_version,
        }


_lock = threading.Lock()
_runtime: RuntimeInfo | None = None


def _check_crypto_support() -> None:
    try:
        hashes.Hash(hashes.SHA512())
    except UnsupportedAlgorithm as exc:
        raise UnsupportedAlgorithmError(
            "SHA-512 is not available in the OpenSSL backend", stage=STAGE_STARTUP
        ) from exc


def _check_c14n_support() -> None:
    probe = etree.fromstring(b"<probe b='2' a='1'/>")
    if etree.tostring(probe, method="c14n") != b'<probe a="1" b="2"></probe>':
        raise UnsupportedAlgorithmError(
            "lxml Canonical XML 1.0 output is not usable", stage=STAGE_STARTUP
        )


def _version(parts: tuple) -> str:
    return ".".join(str(p) for p in parts)


def initialize() -> RuntimeInfo:
    """Initialize crypto and XML support once for the whole process.

    Returns:
        RuntimeInfo describing the loaded libraries
    """
    global _runtime

    if _runtime is not None:
        return _runtime

    with _lock:
        if _runtime is not None:
            return _runtime

        _check_crypto_support()
        _check_c14n_support()

        runtime = RuntimeInfo(
            cryptography_version=cryptography.__version__,
            openssl_version=openssl_backend.openssl_version_text(),
            lxml_version=_version(etree.LXML_VERSION),
            libxml2_version=_version(etree.LIBXML_VERSION),
        )
        logger.debug("Runtime initialized", **runtime.to_dict())
        _runtime = runtime

    return _runtime


def is_initialized() -> bool:
    return _runtime is not None


def reset_runtime() -> None:
    """Forget the cached RuntimeInfo (used by tests)."""
    global _runtime
    with _lock:
        _runtime = None
