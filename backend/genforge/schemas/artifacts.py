"""
Pipeline artifacts: design system, file sets, review report, generation result
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from genforge.schemas.blueprint import Blueprint


class DesignSystem(BaseModel):
    """Design phase output"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    colors: Dict[str, Any] = Field(default_factory=dict)
    typography: Dict[str, Any] = Field(default_factory=dict)
    spacing: Dict[str, Any] = Field(default_factory=dict)
    border_radius: Optional[Any] = Field(default=None, alias="borderRadius")
    shadows: Dict[str, Any] = Field(default_factory=dict)
    animations: bool = False
    dark_mode: bool = Field(default=False, alias="darkMode")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DuplicatePathError(ValueError):
    """A path was added twice to the same FileSet"""

    def __init__(self, path: str):
        super().__init__(f"Duplicate path in file set: {path}")
        self.path = path


@dataclass
class GeneratedFile:
    path: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "content": self.content}


class FileSet:
    """
    Ordered collection of generated files keyed by relative path.

    ``add`` enforces path uniqueness within one phase; ``merge`` combines
    phases, and a later file for the same path replaces the earlier content
    while keeping its original position.
    """

    def __init__(self, files: Optional[List[Tuple[str, str]]] = None):
        self._entries: List[GeneratedFile] = []
        self._index: Dict[str, int] = {}
        for path, content in files or []:
            self.add(path, content)

    @staticmethod
    def _normalize_path(path: str) -> str:
        normalized = path.replace("\\", "/").strip()
        while normalized.startswith("./"):
            normalized = normalized[2:]
        return normalized.lstrip("/")

    def add(self, path: str, content: str) -> None:
        path = self._normalize_path(path)
        if not path:
            raise ValueError("File path must not be empty")
        if path in self._index:
            raise DuplicatePathError(path)
        self._index[path] = len(self._entries)
        self._entries.append(GeneratedFile(path=path, content=content))

    def put(self, path: str, content: str) -> None:
        """Insert or overwrite"""
        path = self._normalize_path(path)
        if path in self._index:
            self._entries[self._index[path]].content = content
        else:
            self.add(path, content)

    def get(self, path: str) -> Optional[str]:
        index = self._index.get(self._normalize_path(path))
        return self._entries[index].content if index is not None else None

    def merge(self, other: "FileSet") -> "FileSet":
        """New FileSet with ``other`` layered over this one"""
        merged = self.copy()
        for entry in other:
            merged.put(entry.path, entry.content)
        return merged

    def copy(self) -> "FileSet":
        return FileSet([(entry.path, entry.content) for entry in self._entries])

    @property
    def paths(self) -> List[str]:
        return [entry.path for entry in self._entries]

    def items(self) -> List[Tuple[str, str]]:
        return [(entry.path, entry.content) for entry in self._entries]

    def __iter__(self) -> Iterator[GeneratedFile]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self._normalize_path(path) in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileSet):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"FileSet({len(self)} files)"

    def to_dict(self) -> Dict[str, str]:
        return {entry.path: entry.content for entry in self._entries}


@dataclass
class ReviewReport:
    """Review phase output; score is 0-100"""
    score: int
    issues: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "score": self.score,
            "issues": list(self.issues),
            "improvements": list(self.improvements),
        }


@dataclass
class GenerationStats:
    total_files: int
    app_files: int
    test_files: int
    components: int
    pages: int
    quality_score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "appFiles": self.app_files,
            "testFiles": self.test_files,
            "components": self.components,
            "pages": self.pages,
            "qualityScore": self.quality_score,
        }


@dataclass
class AppGenerationResult:
    """Everything the multi-phase pipeline produces"""
    blueprint: Blueprint
    design_system: DesignSystem
    files: FileSet
    review_report: ReviewReport
    stats: GenerationStats

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blueprint": self.blueprint.to_dict(),
            "designSystem": self.design_system.to_dict(),
            "files": self.files.to_dict(),
            "reviewReport": self.review_report.to_dict(),
            "stats": self.stats.to_dict(),
        }
