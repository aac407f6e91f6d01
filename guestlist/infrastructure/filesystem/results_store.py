"""Writes POC results to disk as JSON for later analysis."""

import asyncio
import dataclasses
import json
import logging
from pathlib import Path
from typing import Optional, Union

from guestlist.domain.models.office import PocResults

logger = logging.getLogger(__name__)

RESULTS_FILE_TEMPLATE = "poc_results_{poc_id}.json"


class ResultsStore:
    """Saves one results file per POC execution into a directory."""

    def __init__(self, directory: Union[str, Path, None] = None):
        self.directory = Path(directory) if directory is not None else Path.cwd()

    def path_for(self, poc_id: str) -> Path:
        return self.directory / RESULTS_FILE_TEMPLATE.format(poc_id=poc_id)

    async def save(self, results: PocResults) -> Optional[Path]:
        """Writes `results`; returns the file path, or None if writing failed."""
        path = self.path_for(results.poc_id)
        text = json.dumps(dataclasses.asdict(results), indent=2, default=str)
        try:
            await asyncio.to_thread(self._write, path, text)
        except OSError as e:
            logger.warning(f"Failed to save results file {path}: {e}")
            return None
        logger.info(f"Results saved to: {path}")
        return path

    @staticmethod
    def _write(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
