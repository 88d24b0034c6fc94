"""Fingerprints and sampling values for faults."""
import hashlib
import os
import traceback

# 13 hex digits = 52 bits, exactly representable as a float.
_SAMPLE_DIGITS = 13
_SAMPLE_SPACE = float(1 << 52)


def top_frame(error: BaseException) -> str:
    """Return ``file:function:line`` of the innermost traceback frame, or ``-``."""
    tb = error.__traceback__
    if tb is None:
        return "-"
    frames = traceback.extract_tb(tb)
    if not frames:
        return "-"
    frame = frames[-1]
    return f"{os.path.basename(frame.filename)}:{frame.name}:{frame.lineno}"


def fault_type_name(error: BaseException) -> str:
    error_type = type(error)
    module = error_type.__module__
    if module in ("builtins", None):
        return error_type.__qualname__
    return f"{module}.{error_type.__qualname__}"


def fingerprint_fault(error: BaseException, boundary_id: str) -> str:
    """Stable identity for a class of faults.

    Built from the fault type, the top stack frame and the boundary id only,
    so timestamps, messages and occurrence counts never split a fingerprint.
    """
    signature = "|".join((fault_type_name(error), top_frame(error), boundary_id))
    return hashlib.sha256(signature.encode("utf-8")).hexdigest()


def fallback_fingerprint(boundary_id: str) -> str:
    """Fingerprint used when a fault could not be fingerprinted normally."""
    return hashlib.sha256(f"unclassified|{boundary_id}".encode("utf-8")).hexdigest()


def sample_value(fingerprint: str) -> float:
    """Map a fingerprint onto [0, 1) for deterministic sampling."""
    return int(fingerprint[:_SAMPLE_DIGITS], 16) / _SAMPLE_SPACE
