from pathlib import Path

from ynap.loader import read_yaml, schema_from_dict
from ynap.logging_setup import get_logger
from ynap.models import BankSchema

logger = get_logger(__name__)


class SchemaRegistry:
    def __init__(self):
        self._schemas: dict[str, BankSchema] = {}

    def register(self, schema: BankSchema) -> None:
        self._schemas[schema.name] = schema

    def get_by_name(self, name: str) -> BankSchema | None:
        return self._schemas.get(name)

    def get_for_file(self, file_path: Path) -> BankSchema | None:
        """Return the first schema whose file pattern matches the file's name."""
        name = Path(file_path).name
        for schema in self._schemas.values():
            if schema.file_pattern is not None and schema.file_pattern.search(name):
                return schema
        return None

    def list_all(self) -> list[BankSchema]:
        return list(self._schemas.values())

    def load_directory(self, directory: Path) -> int:
        """Register every bank file (``*.yaml`` / ``*.yml`` with a ``columns`` key) in ``directory``."""
        count = 0
        for path in sorted(Path(directory).glob("*.y*ml")):
            if path.suffix not in (".yaml", ".yml"):
                continue
            data = read_yaml(path)
            # Rule files live next to bank files; only bank files declare columns.
            if not isinstance(data, dict) or "columns" not in data:
                continue
            self.register(schema_from_dict(data, base_dir=path.parent))
            logger.debug("loaded bank schema from %s", path)
            count += 1
        return count

