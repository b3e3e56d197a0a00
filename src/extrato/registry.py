from pathlib import Path

from extrato.models import ImporterInfo


class ImporterRegistry:
    def __init__(self):
        self._by_extension: dict[str, ImporterInfo] = {}

    def register(self, info: ImporterInfo) -> None:
        for ext in info.file_extensions:
            self._by_extension[ext.lower()] = info

    def get_for_file(self, file_name: str | Path) -> ImporterInfo | None:
        return self._by_extension.get(Path(file_name).suffix.lower())


registry = ImporterRegistry()
