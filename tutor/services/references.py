from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional


@dataclass(frozen=True)
class ReferenceDocument:
    """A document used as the vocabulary/grammar authority for one language."""

    language: str
    name: str
    path: Path


class ReferenceRegistry:
    """Maps target languages (case-insensitive) to their reference document."""

    def __init__(self, documents: Optional[Dict[str, ReferenceDocument]] = None):
        self._docs: Dict[str, ReferenceDocument] = {}
        for doc in (documents or {}).values():
            self.add(doc)

    @classmethod
    def from_config(cls, mapping: Dict[str, Dict[str, str]], data_dir: str = "data") -> "ReferenceRegistry":
        base = Path(data_dir)
        registry = cls()
        for lang, entry in mapping.items():
            path = Path(entry["path"])
            if not path.is_absolute():
                path = base / path
            registry.add(
                ReferenceDocument(
                    language=lang.lower(),
                    name=entry.get("name") or f"{lang.lower()}-reference",
                    path=path,
                )
            )
        return registry

    def add(self, document: ReferenceDocument) -> None:
        self._docs[document.language.lower()] = document

    def lookup(self, language: Optional[str]) -> Optional[ReferenceDocument]:
        if not language:
            return None
        return self._docs.get(language.lower())

    def languages(self) -> list[str]:
        return sorted(self._docs)

    def __iter__(self) -> Iterator[ReferenceDocument]:
        return iter(self._docs.values())

    def __len__(self) -> int:
        return len(self._docs)
