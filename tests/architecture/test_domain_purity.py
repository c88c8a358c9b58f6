"""
Architecture tests for the kernel layering.

1. inventory_kernel/domain/** performs no I/O: it may not import the
   persistence layer, services, selectors or SQLAlchemy.
2. Selectors never import services.
3. Services never commit or roll back the caller's transaction.
4. The invariants declaration is complete.

These tests read source code via AST; they never import the modules.
"""

import ast
import glob
from pathlib import Path

from inventory_kernel.invariants import (
    ALL_KERNEL_INVARIANTS,
    CONFIGURABLE_INVARIANTS,
    FORBIDDEN_DOMAIN_IMPORTS,
    KernelInvariant,
)

PACKAGE_ROOT = Path(__file__).resolve().parents[2] / "inventory_kernel"


def _python_files(subdir: str) -> list[str]:
    return sorted(glob.glob(f"{PACKAGE_ROOT / subdir}/**/*.py", recursive=True))


def _extract_imports(filepath: str) -> list[tuple[int, str]]:
    tree = ast.parse(Path(filepath).read_text(), filename=filepath)
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _violations(files: list[str], forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for path in files:
        for lineno, module in _extract_imports(path):
            if any(module == f or module.startswith(f + ".") for f in forbidden):
                found.append(f"{path}:{lineno} imports {module}")
    return found


class TestLayering:

    def test_domain_files_found(self):
        assert _python_files("domain")

    def test_domain_is_pure(self):
        assert _violations(_python_files("domain"), FORBIDDEN_DOMAIN_IMPORTS) == []

    def test_selectors_do_not_import_services(self):
        assert _violations(
            _python_files("selectors"), ("inventory_kernel.services",),
        ) == []

    def test_services_never_commit(self):
        offenders = []
        for path in _python_files("services"):
            tree = ast.parse(Path(path).read_text(), filename=path)
            for node in ast.walk(tree):
                if (
                    isinstance(node, ast.Call)
                    and isinstance(node.func, ast.Attribute)
                    and node.func.attr in ("commit", "rollback")
                ):
                    offenders.append(f"{path}:{node.lineno}")
        assert offenders == []


class TestInvariantDeclaration:

    def test_all_invariants_declared(self):
        assert ALL_KERNEL_INVARIANTS == frozenset(KernelInvariant)
        assert len(ALL_KERNEL_INVARIANTS) == 6

    def test_only_non_negative_stock_is_configurable(self):
        assert CONFIGURABLE_INVARIANTS == {KernelInvariant.NON_NEGATIVE_STOCK}
