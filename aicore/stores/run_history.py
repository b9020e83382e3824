"""Append-only run history per workspace, with redaction, rotation and TTL purge."""

from __future__ import annotations

import hashlib
import json
import re
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import MemoryConfig
from ..logging import get_logger

_RECORD_VERSION = 1
_RUNS_FILENAME = "runs.jsonl"
_PURGE_LOG = "purge.log"
_REDACTED = "***REDACTED***"
_SENSITIVE_KEYS = ("password", "token", "secret", "key", "auth", "credentials")

_EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_AWS_KEY = re.compile(r"(?:AKIA|ASIA|ABIA|ACCA)[A-Z0-9]{16}")
_JWT = re.compile(r"eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")
_API_KEY = re.compile(
    r"((?:api[_-]?key|apikey|api_secret|secret_key)[\"']?\s*[:=]\s*[\"']?)([^\"'\s]{8,})",
    re.IGNORECASE,
)
_SECRET = re.compile(
    r"((?:password|passwd|pwd|token|auth)[\"']?\s*[:=]\s*[\"']?)([^\"'\s]{8,})",
    re.IGNORECASE,
)

logger = get_logger("stores.run_history")


def redact_text(text: str) -> str:
    """Mask e-mail addresses, cloud keys, JWTs and inline secrets."""
    text = _EMAIL.sub("[EMAIL_REDACTED]", text)
    text = _API_KEY.sub(lambda match: match.group(1) + _REDACTED, text)
    text = _AWS_KEY.sub("[AWS_KEY_REDACTED]", text)
    text = _JWT.sub("[JWT_REDACTED]", text)
    text = _SECRET.sub(lambda match: match.group(1) + _REDACTED, text)
    return text


def redact(value: Any) -> Any:
    """Recursively redact strings; values under sensitive keys are masked outright."""
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, list):
        return [redact(item) for item in value]
    if isinstance(value, dict):
        redacted: Dict[str, Any] = {}
        for key, item in value.items():
            lowered = str(key).lower()
            if isinstance(item, str) and any(word in lowered for word in _SENSITIVE_KEYS):
                redacted[key] = _REDACTED
            else:
                redacted[key] = redact(item)
        return redacted
    return value


def project_hash(path: str | Path) -> str:
    """Short stable identifier for a workspace path."""
    resolved = str(Path(path).expanduser().resolve())
    return hashlib.md5(resolved.encode("utf-8")).hexdigest()[:8]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _isoformat(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class RunHistory:
    """Stores one JSON line per pipeline run under ``<directory>/<hash>/runs.jsonl``."""

    def __init__(
        self,
        directory: Path | None = None,
        *,
        max_file_size: int = MemoryConfig.max_file_size,
        ttl_days: int = MemoryConfig.ttl_days,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.directory = directory or Path.home() / ".aicore" / "projects"
        self.max_file_size = max_file_size
        self.ttl_days = ttl_days
        self._clock = clock or _utcnow

    @classmethod
    def from_config(cls, config: MemoryConfig) -> "RunHistory":
        return cls(
            config.directory,
            max_file_size=config.max_file_size,
            ttl_days=config.ttl_days,
        )

    def runs_path(self, path: str | Path) -> Path:
        return self.directory / project_hash(path) / _RUNS_FILENAME

    def save_run(
        self,
        path: str | Path,
        *,
        agent_ids: Sequence[str],
        user_intent: str,
        success: bool,
        summary: str,
        extra: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Append a redacted run record and return its ``<hash>/run-<n>`` reference.

        Write failures are logged and produce an empty reference.
        """
        digest = project_hash(path)
        runs_file = self.runs_path(path)
        payload: Dict[str, Any] = {
            "agent_ids": list(agent_ids),
            "user_intent": user_intent,
            "success": success,
            "summary": summary,
        }
        if extra:
            payload.update(extra)
        record = {
            "version": _RECORD_VERSION,
            "timestamp": _isoformat(self._clock()),
            "project_hash": digest,
            "project_path": str(Path(path).expanduser().resolve()),
            **redact(payload),
        }

        try:
            runs_file.parent.mkdir(parents=True, exist_ok=True)
            self._rotate_if_needed(runs_file, digest)
            self._purge_file(runs_file, digest)
            with runs_file.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record, sort_keys=True) + "\n")
        except OSError as exc:
            logger.warning("Failed to record run for %s: %s", path, exc)
            return ""
        return f"{digest}/run-{len(self._read(runs_file))}"

    def runs(self, path: str | Path) -> List[Dict[str, Any]]:
        """Return every readable record for the workspace, oldest first."""
        return self._read(self.runs_path(path))

    def status(self, path: str | Path) -> Dict[str, Any]:
        runs_file = self.runs_path(path)
        records = self._read(runs_file)
        cutoff = self._cutoff()
        expired = 0
        for record in records:
            moment = _parse_timestamp(record.get("timestamp"))
            if moment is not None and moment < cutoff:
                expired += 1
        try:
            size = runs_file.stat().st_size
        except OSError:
            size = 0
        return {
            "project_hash": project_hash(path),
            "runs": len(records),
            "expired": expired,
            "size_bytes": size,
            "last_run": records[-1].get("timestamp") if records else None,
        }

    def success_rate(self, path: str | Path, agent_ids: Sequence[str] = ()) -> Optional[float]:
        """Fraction of recorded runs that succeeded, or None without history.

        When *agent_ids* is given only runs that dispatched at least one of
        those agents are counted.
        """
        wanted = set(agent_ids)
        relevant = [
            record
            for record in self.runs(path)
            if not wanted or wanted.intersection(record.get("agent_ids") or ())
        ]
        if not relevant:
            return None
        succeeded = sum(1 for record in relevant if record.get("success") is True)
        return succeeded / len(relevant)

    def purge_expired(self, path: str | Path) -> Dict[str, int]:
        runs_file = self.runs_path(path)
        if not runs_file.exists():
            return {"purged": 0, "remaining": 0}
        return self._purge_file(runs_file, project_hash(path))

    def purge_all(self, path: str | Path, reason: str = "manual") -> Dict[str, Any]:
        """Move the workspace history aside; the backup file is kept on disk."""
        runs_file = self.runs_path(path)
        if not runs_file.exists():
            return {"purged": 0}
        count = len(self._read(runs_file))
        backup = runs_file.with_name(f"{_RUNS_FILENAME}.{int(self._clock().timestamp())}.backup")
        runs_file.rename(backup)
        self._log_purge(
            "purge_all",
            {"project_hash": project_hash(path), "reason": reason, "purged": count},
        )
        return {"purged": count, "backup_path": str(backup)}

    # ------------------------------------------------------------------
    # Internal helpers

    def _cutoff(self) -> datetime:
        return self._clock() - timedelta(days=self.ttl_days)

    def _read(self, runs_file: Path) -> List[Dict[str, Any]]:
        try:
            lines = runs_file.read_text(encoding="utf-8", errors="replace").splitlines()
        except FileNotFoundError:
            return []
        except OSError as exc:
            logger.warning("Failed to read run history %s: %s", runs_file, exc)
            return []
        records: List[Dict[str, Any]] = []
        for line in lines:
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(record, dict):
                records.append(record)
        return records

    def _rotate_if_needed(self, runs_file: Path, digest: str) -> None:
        try:
            size = runs_file.stat().st_size
        except FileNotFoundError:
            return
        if size < self.max_file_size:
            return
        backup = runs_file.with_name(f"{_RUNS_FILENAME}.{int(self._clock().timestamp())}.old")
        runs_file.rename(backup)
        self._log_purge("rotate", {"project_hash": digest, "backup_path": str(backup)})

    def _purge_file(self, runs_file: Path, digest: str) -> Dict[str, int]:
        if not runs_file.exists():
            return {"purged": 0, "remaining": 0}
        cutoff = self._cutoff()
        kept: List[str] = []
        purged = 0
        for line in runs_file.read_text(encoding="utf-8", errors="replace").splitlines():
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                continue
            moment = _parse_timestamp(record.get("timestamp")) if isinstance(record, dict) else None
            if moment is not None and moment < cutoff:
                purged += 1
            else:
                kept.append(line)
        if purged:
            runs_file.write_text("".join(f"{line}\n" for line in kept), encoding="utf-8")
            self._log_purge(
                "ttl_purge",
                {"project_hash": digest, "purged": purged, "remaining": len(kept)},
            )
        return {"purged": purged, "remaining": len(kept)}

    def _log_purge(self, action: str, details: Dict[str, Any]) -> None:
        entry = {"timestamp": _isoformat(self._clock()), "action": action, **details}
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with (self.directory / _PURGE_LOG).open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry, sort_keys=True) + "\n")
        except OSError as exc:
            logger.warning("Failed to write purge log: %s", exc)


__all__ = ["RunHistory", "project_hash", "redact", "redact_text"]
