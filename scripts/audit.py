"""Audit logging utilities for group/role mapper changes."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import os
import sys
from pathlib import Path
from typing import Any, Literal

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "mapper-events.jsonl"
_default_secret_paths: list[Path] = [
    Path(".runtime/secrets/audit_log_signing_key"),
    Path(".runtime/audit/audit_log_signing_key"),
]


def _get_signing_key() -> bytes:
    """Get the audit signing key (environment first, then key files)."""
    env_path = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if env_path and Path(env_path).exists():
        try:
            return Path(env_path).read_text(encoding="utf-8").strip().encode("utf-8")
        except OSError:
            pass
    if "AUDIT_LOG_SIGNING_KEY" in os.environ:
        return os.environ["AUDIT_LOG_SIGNING_KEY"].strip().encode("utf-8")
    for path in _default_secret_paths:
        if path.exists():
            try:
                return path.read_text(encoding="utf-8").strip().encode("utf-8")
            except OSError:
                continue
    return b""

EventType = Literal["role_create", "group_role_mapping"]


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    # Canonical JSON representation for signing
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_mapper_event(
    event_type: EventType,
    target: str,
    *,
    operator: str = "mapper",
    realm: str = "",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a mapper change to the audit trail with timestamp and signature.

    Args:
        event_type: role_create or group_role_mapping
        target: Role name affected by the operation
        operator: Who performed the operation
        realm: Keycloak realm where operation occurred
        details: Additional context (group id, role id, error)
        success: Whether the operation succeeded
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "realm": realm,
        "target": target,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    # Append to JSONL file (one JSON object per line)
    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_mapper_event(
    event_type: EventType,
    target: str,
    *,
    operator: str = "mapper",
    realm: str = "",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Log a mapper event without ever raising.

    Audit failures are reported on stderr so they never interrupt an apply run.

    Returns:
        True if event was logged successfully, False if logging failed
    """
    try:
        log_mapper_event(
            event_type,
            target,
            operator=operator,
            realm=realm,
            details=details,
            success=success,
        )
        return True
    except (OSError, TypeError, ValueError) as e:
        print(
            f"[audit] Warning: Failed to log {event_type} event for {target}: {e}",
            file=sys.stderr,
        )
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
                stored_sig = event.pop("signature", "")
                if not stored_sig:
                    continue
                computed_sig = _sign_event(event)
                if hmac.compare_digest(stored_sig, computed_sig):
                    valid += 1
            except (json.JSONDecodeError, KeyError):
                continue

    return total, valid


if __name__ == "__main__":
    total, valid = verify_audit_log()
    print(f"Audit log: {valid}/{total} events with valid signatures")
    sys.exit(0 if total == valid else 1)
