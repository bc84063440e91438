"""Composition-root handle for the three learning stores.

The application builds one LearningStores at startup and passes it to whatever
needs it. The backend is chosen once, on first access: "json" stores live under
<data_dir>/learning, and if that directory is not writable the handle falls back
to in-memory stores and logs a warning once. Tests build their own handle with
LearningStores.in_memory().
"""

import logging
from pathlib import Path

from services.calibration_store import (
    INTERACTION_CAP,
    CalibrationStore,
    InMemoryCalibrationStore,
    JsonCalibrationStore,
)
from services.feedback_store import (
    FEEDBACK_CAP,
    FeedbackStore,
    InMemoryFeedbackStore,
    JsonFeedbackStore,
)
from services.usage_store import USAGE_CAP, InMemoryUsageStore, JsonUsageStore, UsageStore
from utils.json_store import probe_writable
from utils.learning_config import get_data_dir, get_store_backend

logger = logging.getLogger(__name__)


class LearningStores:
    """Lazily-selected feedback, usage and calibration stores."""

    def __init__(
        self,
        backend: str | None = None,
        data_dir: Path | None = None,
        feedback_cap: int = FEEDBACK_CAP,
        usage_cap: int = USAGE_CAP,
        interaction_cap: int = INTERACTION_CAP,
    ):
        """
        Args:
            backend: "json" or "memory". Resolved from INFRAGUARD_STORE_BACKEND when None.
            data_dir: Root data directory. Resolved from INFRAGUARD_DATA_DIR when None.
            feedback_cap: Maximum number of feedback records kept.
            usage_cap: Maximum number of usage events kept.
            interaction_cap: Maximum number of finding interactions kept.
        """
        if backend is not None and backend not in ("json", "memory"):
            raise ValueError(f"Unknown store backend '{backend}', expected 'json' or 'memory'")
        self._requested_backend = backend
        self._data_dir = data_dir
        self._caps = (feedback_cap, usage_cap, interaction_cap)
        self._backend: str | None = None
        self._feedback: FeedbackStore | None = None
        self._usage: UsageStore | None = None
        self._calibration: CalibrationStore | None = None

    @classmethod
    def in_memory(cls, **caps) -> "LearningStores":
        return cls(backend="memory", **caps)

    @property
    def backend(self) -> str:
        """The backend actually in use ("json" or "memory")."""
        self._select()
        return self._backend

    def _select(self) -> None:
        if self._backend is not None:
            return

        feedback_cap, usage_cap, interaction_cap = self._caps
        backend = self._requested_backend or get_store_backend()

        if backend == "json":
            store_dir = (self._data_dir or get_data_dir()) / "learning"
            if probe_writable(store_dir):
                self._feedback = JsonFeedbackStore(store_dir, feedback_cap)
                self._usage = JsonUsageStore(store_dir, usage_cap)
                self._calibration = JsonCalibrationStore(store_dir, interaction_cap)
                self._backend = "json"
                logger.info("Using JSON learning stores in %s", store_dir)
                return
            logger.warning(
                "Learning store directory %s is not writable, using in-memory stores", store_dir
            )

        self._feedback = InMemoryFeedbackStore(feedback_cap)
        self._usage = InMemoryUsageStore(usage_cap)
        self._calibration = InMemoryCalibrationStore(interaction_cap)
        self._backend = "memory"

    @property
    def feedback(self) -> FeedbackStore:
        self._select()
        return self._feedback

    @property
    def usage(self) -> UsageStore:
        self._select()
        return self._usage

    @property
    def calibration(self) -> CalibrationStore:
        self._select()
        return self._calibration
