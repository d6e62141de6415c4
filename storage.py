import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class LocalStorage:
    """Key-value storage persisted to a JSON file."""

    def __init__(self, file_path: Union[str, Path]):
        """
        Initialize the LocalStorage.

        Args:
            file_path: Path to the JSON file holding the stored values
        """
        self.file_path = Path(file_path)
        self.values: Dict[str, Any] = {}
        self.load()

    def load(self):
        """
        Load the stored values from the JSON file.
        Starts empty if the file doesn't exist or is corrupted.
        """
        if not self.file_path.exists():
            self.values = {}
            return

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (ValueError, OSError) as e:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            logger.warning("Could not read %s, starting empty: %s", self.file_path, e)
            self.values = {}
            return

        values = data.get('values') if isinstance(data, dict) else None
        self.values = values if isinstance(values, dict) else {}

    def save(self):
        """Write all stored values to the JSON file with pretty formatting."""
        self._write(self.values)

    def _write(self, values: Dict[str, Any]):
        data = {
            'version': 1,
            'values': values
        }

        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.values.get(key, default)

    def set(self, key: str, value: Any):
        """Store a JSON-serializable value under key and write the file."""
        values = dict(self.values)
        values[key] = value
        # Memory only changes once the file has been written
        self._write(values)
        self.values = values

    def remove(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed, False otherwise
        """
        if key not in self.values:
            return False
        values = dict(self.values)
        del values[key]
        self._write(values)
        self.values = values
        return True

    def keys(self) -> List[str]:
        return list(self.values)
