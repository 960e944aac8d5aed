"""
Career snapshot persistence (JSON)
"""
import json
from pathlib import Path
from typing import Union

from loguru import logger

from .schemas import CareerSnapshot


def save_snapshot(snapshot: CareerSnapshot, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
    logger.debug(f"Snapshot saved: {path} ({snapshot.basho_count} basho)")
    return path


def load_snapshot(path: Union[str, Path]) -> CareerSnapshot:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return CareerSnapshot.model_validate(data)


def snapshot_path(output_dir: Union[str, Path], snapshot: CareerSnapshot) -> Path:
    return Path(output_dir) / f"career_{snapshot.seed}.json"
