"""
Unit Tests for Pipeline Artifacts
"""
import pytest

from genforge.schemas.artifacts import DesignSystem, DuplicatePathError, FileSet, ReviewReport


class TestFileSet:
    """Path-keyed, ordered, unique within a phase"""

    def test_add_and_get(self):
        files = FileSet()
        files.add("src/App.jsx", "app")

        assert files.get("src/App.jsx") == "app"
        assert "src/App.jsx" in files
        assert len(files) == 1

    def test_duplicate_path_raises(self):
        files = FileSet([("src/App.jsx", "one")])

        with pytest.raises(DuplicatePathError) as exc_info:
            files.add("./src/App.jsx", "two")
        assert exc_info.value.path == "src/App.jsx"

    def test_paths_are_normalized(self):
        files = FileSet([("./src\\pages\\home.jsx", "x")])

        assert files.paths == ["src/pages/home.jsx"]
        assert "/src/pages/home.jsx" in files

    def test_empty_path_rejected(self):
        with pytest.raises(ValueError):
            FileSet().add("  ", "x")

    def test_merge_later_wins_and_keeps_position(self):
        app = FileSet([("a.js", "1"), ("b.js", "2")])
        tests = FileSet([("c.test.js", "3"), ("a.js", "override")])

        merged = app.merge(tests)

        assert merged.items() == [("a.js", "override"), ("b.js", "2"), ("c.test.js", "3")]
        assert app.get("a.js") == "1"

    def test_put_overwrites(self):
        files = FileSet([("a.js", "1")])
        files.put("a.js", "2")
        files.put("b.js", "3")

        assert files.to_dict() == {"a.js": "2", "b.js": "3"}

    def test_equality_and_copy(self):
        files = FileSet([("a.js", "1")])
        clone = files.copy()

        assert clone == files
        clone.put("a.js", "changed")
        assert clone != files


class TestReviewReport:
    def test_passed_without_issues(self):
        assert ReviewReport(score=95, improvements=["x"]).passed
        assert not ReviewReport(score=90, issues=["y"]).passed

    def test_to_dict(self):
        assert ReviewReport(score=80, issues=["a"]).to_dict() == {
            "passed": False, "score": 80, "issues": ["a"], "improvements": [],
        }


class TestDesignSystem:
    def test_aliases(self):
        design = DesignSystem.model_validate({"colors": {"primary": "#000"}, "borderRadius": "4px", "darkMode": True})

        assert design.border_radius == "4px"
        assert design.dark_mode is True
        assert design.to_dict()["borderRadius"] == "4px"

    def test_defaults(self):
        design = DesignSystem()

        assert design.colors == {}
        assert design.animations is False
