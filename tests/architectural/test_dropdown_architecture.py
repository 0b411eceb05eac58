"""Architectural tests for the dropdown service.

All checks use static filesystem/AST inspection to avoid import-time side
effects: layering of the pure ordering core, SQL confined to repositories
and persistence modules, logging conventions, and packaging of migrations.
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import Iterable, List, Set

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
PKG_DIR = PROJECT_ROOT / "dropdown_service"
LOGIC_DIR = PKG_DIR / "logic"
ROUTES_DIR = PKG_DIR / "routes"
MIGRATIONS_DIR = PKG_DIR / "db" / "migrations"

# Logic modules allowed to issue SQL
SQL_MODULES = {
    "order_persistence.py",
    "repository_categories.py",
    "repository_items.py",
}


def parse(path: Path) -> ast.Module:
    return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))


def imported_modules(tree: ast.AST) -> Set[str]:
    names: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            names.add(node.module)
    return names


def python_files(root: Path) -> List[Path]:
    return sorted(p for p in root.rglob("*.py") if "__pycache__" not in p.parts)


def _roots(modules: Iterable[str]) -> Set[str]:
    return {m.split(".")[0] for m in modules}


def test_ordering_core_is_pure() -> None:
    """The planners import nothing beyond the stdlib and the error taxonomy."""
    imports = imported_modules(parse(LOGIC_DIR / "ordering.py"))
    assert not _roots(imports) & {"sqlalchemy", "fastapi", "pydantic", "logging", "os"}
    internal = {m for m in imports if m.startswith("dropdown_service")}
    assert internal == {"dropdown_service.logic.errors"}


def test_errors_module_has_no_dependencies() -> None:
    imports = imported_modules(parse(LOGIC_DIR / "errors.py"))
    assert not {m for m in imports if m.startswith("dropdown_service")}
    assert not _roots(imports) & {"sqlalchemy", "fastapi"}


@pytest.mark.parametrize("path", python_files(ROUTES_DIR), ids=lambda p: p.name)
def test_routes_execute_no_sql(path: Path) -> None:
    imports = imported_modules(parse(path))
    assert not any(m.startswith("sqlalchemy") for m in imports), path.name
    assert "sql_text(" not in path.read_text(encoding="utf-8")


def test_sql_is_confined_to_repositories_and_persistence() -> None:
    offenders = [
        p.name
        for p in python_files(LOGIC_DIR)
        if "sql_text(" in p.read_text(encoding="utf-8") and p.name not in SQL_MODULES
    ]
    assert offenders == []


@pytest.mark.parametrize(
    "path",
    [p for p in python_files(PKG_DIR) if p.name not in {"__init__.py", "ordering.py", "errors.py"}],
    ids=lambda p: str(p.relative_to(PKG_DIR)),
)
def test_modules_use_module_loggers(path: Path) -> None:
    """Any module that logs obtains its logger via logging.getLogger(__name__)."""
    text = path.read_text(encoding="utf-8")
    if "logger." not in text:
        pytest.skip("module does not log")
    assert "logger = logging.getLogger(__name__)" in text
    assert not re.search(r"\bprint\(", text)


def test_no_bare_except_in_package() -> None:
    for path in python_files(PKG_DIR):
        for node in ast.walk(parse(path)):
            if isinstance(node, ast.ExceptHandler):
                assert node.type is not None, f"bare except in {path.name}:{node.lineno}"


def test_every_forward_migration_has_a_rollback() -> None:
    forward = [p for p in MIGRATIONS_DIR.glob("*.sql") if "rollback" not in p.name]
    assert forward
    for path in forward:
        assert (MIGRATIONS_DIR / f"{path.stem}_rollback.sql").exists(), path.name


def test_sort_order_has_no_unique_constraint() -> None:
    """Shift batches pass through transient duplicate orders; only a plain index is allowed."""
    raw = (MIGRATIONS_DIR / "001_dropdown_schema.sql").read_text(encoding="utf-8")
    sql = "\n".join(ln for ln in raw.splitlines() if not ln.strip().startswith("--")).upper()
    assert "CREATE INDEX" in sql
    assert not re.search(r"UNIQUE[^;]*SORT_ORDER", sql)


def test_migrations_are_packaged() -> None:
    pyproject = (PROJECT_ROOT / "pyproject.toml").read_text(encoding="utf-8")
    assert "migrations/*.sql" in pyproject
