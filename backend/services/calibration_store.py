"""Finding interaction store.

Records which findings were shown to, ignored by, or fixed by users. Calibration
statistics are derived from the full interaction history on demand and never
stored. Like usage events, interactions are telemetry: write failures are
logged and dropped. At most `cap` interactions are kept.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from models.learning import AntiPatternCalibration, AntiPatternInteraction
from utils.calibration_engine import compute_calibration_data
from utils.json_store import JsonObjectStore, oldest_ids, run_blocking
from utils.learning_config import DEFAULT_CALIBRATION_CONFIG, CalibrationConfig

logger = logging.getLogger(__name__)

INTERACTION_CAP = 5000
INTERACTION_FILE = "antipattern-interactions.json"


class CalibrationStore(ABC):
    @abstractmethod
    async def save_interaction(self, interaction: AntiPatternInteraction) -> None: ...

    @abstractmethod
    async def get_interactions(
        self, anti_pattern_id: str | None = None
    ) -> list[AntiPatternInteraction]:
        """Return all interactions, or only those for one finding id."""

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def clear(self) -> None: ...

    async def get_calibration_data(
        self,
        severities: dict[str, str] | None = None,
        config: CalibrationConfig = DEFAULT_CALIBRATION_CONFIG,
    ) -> dict[str, AntiPatternCalibration]:
        return compute_calibration_data(await self.get_interactions(), severities, config)


class InMemoryCalibrationStore(CalibrationStore):
    def __init__(self, cap: int = INTERACTION_CAP):
        self.cap = cap
        self._interactions: dict[str, AntiPatternInteraction] = {}

    async def save_interaction(self, interaction: AntiPatternInteraction) -> None:
        self._interactions[interaction.id] = interaction
        timestamps = {iid: i.timestamp for iid, i in self._interactions.items()}
        for old_id in oldest_ids(timestamps, self.cap):
            del self._interactions[old_id]

    async def get_interactions(
        self, anti_pattern_id: str | None = None
    ) -> list[AntiPatternInteraction]:
        items = list(self._interactions.values())
        if anti_pattern_id:
            return [i for i in items if i.anti_pattern_id == anti_pattern_id]
        return items

    async def count(self) -> int:
        return len(self._interactions)

    async def clear(self) -> None:
        self._interactions.clear()


class JsonCalibrationStore(CalibrationStore):
    def __init__(self, data_dir: Path, cap: int = INTERACTION_CAP):
        self.cap = cap
        self._store = JsonObjectStore(data_dir / INTERACTION_FILE)

    async def save_interaction(self, interaction: AntiPatternInteraction) -> None:
        try:
            await run_blocking(
                self._store.put, interaction.id, interaction.model_dump(mode="json"), self.cap
            )
        except (OSError, ValueError) as exc:
            logger.error("Failed to save interaction %s: %s", interaction.id, exc)

    async def get_interactions(
        self, anti_pattern_id: str | None = None
    ) -> list[AntiPatternInteraction]:
        try:
            rows = await run_blocking(self._store.all)
            items = [AntiPatternInteraction.model_validate(row) for row in rows]
        except (OSError, ValueError) as exc:
            logger.error("Failed to get interactions: %s", exc)
            return []
        if anti_pattern_id:
            return [i for i in items if i.anti_pattern_id == anti_pattern_id]
        return items

    async def count(self) -> int:
        try:
            return await run_blocking(self._store.count)
        except (OSError, ValueError) as exc:
            logger.error("Failed to count interactions: %s", exc)
            return 0

    async def clear(self) -> None:
        try:
            await run_blocking(self._store.clear)
        except (OSError, ValueError) as exc:
            logger.error("Failed to clear interactions: %s", exc)
