"""
Logging Configuration and Audit Trail Infrastructure.

This module provides the package logger factory and an audit trail of the
corrections the core applies to out-of-range values: zoom factors clamped
to their extent, latitudes clamped away from the Mercator singularity.
Corrections are never errors (the interaction simply stops at the bound),
but recording them makes zoom and auto-fit behaviour inspectable.
"""

import hashlib
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from contextlib import contextmanager
import threading


# Configure root logger for the package
def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get a logger configured for the path visualizer.

    Parameters
    ----------
    name : str
        Logger name (typically __name__).
    level : int
        Logging level.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


@dataclass
class ConstraintCorrection:
    """Record of a value pulled back inside its valid range.

    Attributes
    ----------
    timestamp : datetime
        When the correction happened.
    constraint_name : str
        Identifier for the constraint (e.g. 'mercator_zoom_extent').
    original_value : float
        The requested value.
    corrected_value : float
        The value actually stored.
    correction_magnitude : float
        Absolute change applied.
    context : dict
        Additional context (view mode, event kind, ...).
    """
    timestamp: datetime
    constraint_name: str
    original_value: float
    corrected_value: float
    correction_magnitude: float
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SessionMetadata:
    """Metadata for one visualization session."""
    session_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    config_hash: str = ""
    requests: int = 0
    corrections: List[ConstraintCorrection] = field(default_factory=list)

    def compute_config_hash(self, config: Dict[str, Any]) -> str:
        """Compute a deterministic hash of the configuration.

        Parameters
        ----------
        config : dict
            The configuration dictionary.

        Returns
        -------
        str
            Truncated SHA-256 hash of the configuration.
        """
        config_str = json.dumps(config, sort_keys=True, default=str)
        self.config_hash = hashlib.sha256(config_str.encode()).hexdigest()[:16]
        return self.config_hash


class AuditLogger:
    """Central record of constraint corrections.

    Thread Safety
    -------------
    Instance creation is guarded by a lock; recording assumes the single
    logical thread of control that owns the view state.

    Session Routing
    ---------------
    A record goes to the session named by `session_id`, or to the session
    made active by `session_context` / `active_session` when none is named.
    Records for a closed or unknown session are not kept. At most
    `MAX_CLOSED_SESSIONS` closed sessions are retained; older ones are
    evicted.

    Examples
    --------
    >>> audit = AuditLogger()
    >>> with audit.session_context("globe-001") as session:
    ...     audit.log_constraint_correction(
    ...         constraint_name="orthographic_zoom_extent",
    ...         original_value=12.0,
    ...         corrected_value=10.0,
    ...     )
    >>> audit.get_session_summary("globe-001")["total_corrections"]
    1
    """

    _instance: Optional['AuditLogger'] = None
    _lock = threading.Lock()

    MAX_CLOSED_SESSIONS = 32

    def __new__(cls) -> 'AuditLogger':
        """Singleton pattern for global audit logger."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the audit logger."""
        if self._initialized:
            return

        self._sessions: Dict[str, SessionMetadata] = {}
        self._current_session_id: Optional[str] = None
        self._logger = get_logger("audit")
        self._initialized = True

    @property
    def current_session(self) -> Optional[SessionMetadata]:
        if self._current_session_id is None:
            return None
        return self._sessions.get(self._current_session_id)

    def has_session(self, session_id: str) -> bool:
        return session_id in self._sessions

    @contextmanager
    def session_context(self, session_id: str, config: Optional[Dict[str, Any]] = None):
        """Context manager for a visualization session.

        Parameters
        ----------
        session_id : str
            Unique identifier for this session.
        config : dict, optional
            Configuration to compute hash from.

        Yields
        ------
        SessionMetadata
            The metadata object for this session.
        """
        metadata = self.open_session(session_id, config)
        try:
            with self.active_session(session_id):
                yield metadata
        finally:
            self.close_session(session_id)

    @contextmanager
    def active_session(self, session_id: str):
        """Make `session_id` receive unrouted records inside the block."""
        previous = self._current_session_id
        self._current_session_id = session_id
        try:
            yield self._sessions.get(session_id)
        finally:
            self._current_session_id = previous

    def open_session(self, session_id: str, config: Optional[Dict[str, Any]] = None) -> SessionMetadata:
        """Register a session. Records reach it by id or via `active_session`."""
        metadata = SessionMetadata(session_id=session_id, start_time=datetime.now())
        if config:
            metadata.compute_config_hash(config)

        self._sessions.pop(session_id, None)
        self._sessions[session_id] = metadata
        self._logger.info(f"Starting session {session_id} with config hash {metadata.config_hash}")
        return metadata

    def close_session(self, session_id: str) -> None:
        metadata = self._sessions.get(session_id)
        if metadata is None or metadata.end_time is not None:
            return
        metadata.end_time = datetime.now()
        self._logger.info(
            f"Completed session {session_id}. "
            f"Requests: {metadata.requests}, corrections: {len(metadata.corrections)}"
        )
        self._evict_closed_sessions()

    def _evict_closed_sessions(self) -> None:
        closed = [sid for sid, m in self._sessions.items() if m.end_time is not None]
        for sid in closed[:max(0, len(closed) - self.MAX_CLOSED_SESSIONS)]:
            del self._sessions[sid]
            self._logger.debug(f"Evicted closed session {sid}")

    def _open_target(self, session_id: Optional[str]) -> Optional[SessionMetadata]:
        session = self.current_session if session_id is None else self._sessions.get(session_id)
        if session is None or session.end_time is not None:
            return None
        return session

    def log_request(self, session_id: Optional[str] = None) -> None:
        """Count a visualize request against a session."""
        session = self._open_target(session_id)
        if session is not None:
            session.requests += 1

    def log_constraint_correction(
        self,
        constraint_name: str,
        original_value: float,
        corrected_value: float,
        context: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None
    ) -> None:
        """Log a value clamped into its valid range.

        Parameters
        ----------
        constraint_name : str
            Identifier for the constraint.
        original_value : float
            Value before correction.
        corrected_value : float
            Value after correction.
        context : dict, optional
            Additional context for the correction.
        session_id : str, optional
            Session to record against. Defaults to the active session.
        """
        correction = ConstraintCorrection(
            timestamp=datetime.now(),
            constraint_name=constraint_name,
            original_value=float(original_value),
            corrected_value=float(corrected_value),
            correction_magnitude=abs(float(corrected_value) - float(original_value)),
            context=context or {}
        )

        session = self._open_target(session_id)
        if session is not None:
            session.corrections.append(correction)

        self._logger.debug(
            f"CONSTRAINT CORRECTION | {constraint_name} | "
            f"original={original_value:.4f} -> corrected={corrected_value:.4f}"
        )

    def get_session_summary(self, session_id: str) -> Dict[str, Any]:
        """Get a summary of a session.

        Raises
        ------
        KeyError
            If no session with that identifier was opened.
        """
        if session_id not in self._sessions:
            raise KeyError(f"No session found with ID {session_id}")

        metadata = self._sessions[session_id]

        correction_counts: Dict[str, int] = {}
        for c in metadata.corrections:
            correction_counts[c.constraint_name] = correction_counts.get(c.constraint_name, 0) + 1

        return {
            "session_id": session_id,
            "config_hash": metadata.config_hash,
            "start_time": metadata.start_time.isoformat(),
            "end_time": metadata.end_time.isoformat() if metadata.end_time else None,
            "requests": metadata.requests,
            "total_corrections": len(metadata.corrections),
            "correction_counts_by_type": correction_counts,
        }

    def export_session_artifacts(self, session_id: str, output_path: Path) -> None:
        """Export the summary and every correction of a session to JSON."""
        summary = self.get_session_summary(session_id)
        metadata = self._sessions[session_id]

        artifacts = dict(summary)
        artifacts["corrections"] = [
            {
                "timestamp": c.timestamp.isoformat(),
                "constraint_name": c.constraint_name,
                "original_value": c.original_value,
                "corrected_value": c.corrected_value,
                "correction_magnitude": c.correction_magnitude,
                "context": c.context
            }
            for c in metadata.corrections
        ]

        with open(output_path, 'w') as f:
            json.dump(artifacts, f, indent=2)

        self._logger.info(f"Exported audit artifacts to {output_path}")
