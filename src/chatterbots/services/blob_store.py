"""
Blob store for user-authored personas

Best-effort key/value persistence: loading never raises and saving logs
failures instead of propagating them
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

import aiofiles
import yaml

from ..paths import ensure_dir

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Opaque key -> list-of-records persistence"""

    @abstractmethod
    async def load(self, key: str) -> List[Dict[str, Any]]:
        """Return the stored records for key, or an empty list."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, key: str, items: List[Dict[str, Any]]) -> None:
        """Store records under key; failures are logged, not raised."""
        raise NotImplementedError


class YamlBlobStore(BlobStore):
    """Stores each key as one YAML document under a state directory"""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        safe_key = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in key)
        return self.base_dir / f"{safe_key}.yaml"

    async def load(self, key: str) -> List[Dict[str, Any]]:
        path = self.path_for(key)
        if not path.exists():
            return []

        try:
            async with aiofiles.open(path, 'r', encoding='utf-8') as f:
                content = await f.read()
            data = yaml.safe_load(content)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load '{key}' from {path}: {e}")
            return []

        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            logger.warning(f"Ignoring malformed data for '{key}' in {path}")
            return []
        return data

    async def save(self, key: str, items: List[Dict[str, Any]]) -> None:
        """
        Save records (atomic write)

        Uses temporary file + replace for atomicity
        """
        path = self.path_for(key)
        temp_path = path.with_suffix('.yaml.tmp')
        try:
            ensure_dir(path.parent)
            content = yaml.safe_dump(list(items), allow_unicode=True, sort_keys=False)
            async with aiofiles.open(temp_path, 'w', encoding='utf-8') as f:
                await f.write(content)
            temp_path.replace(path)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save '{key}' to {path}: {e}")
