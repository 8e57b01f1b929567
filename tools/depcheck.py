from __future__ import annotations

import argparse
import ast
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

SRC_ROOT = Path(__file__).resolve().parents[1] / "src" / "orderflow"

_FRAMEWORKS = frozenset(
    {
        "fastapi",
        "starlette",
        "sqlalchemy",
        "alembic",
        "redis",
        "httpx",
        "requests",
        "opentelemetry",
    }
)

# Inner layers may not reach outwards; domain stays free of third-party code altogether.
LAYER_RULES: dict[str, frozenset[str]] = {
    "domain": _FRAMEWORKS
    | {
        "pydantic",
        "prometheus_client",
        "orderflow.application",
        "orderflow.infrastructure",
        "orderflow.api",
    },
    "application": _FRAMEWORKS | {"orderflow.infrastructure", "orderflow.api"},
}


@dataclass(frozen=True)
class Violation:
    file_path: Path
    line: int
    module: str
    layer: str


def _python_files(root: Path) -> Iterable[Path]:
    if root.is_file() and root.suffix == ".py":
        yield root
        return
    if root.is_dir():
        yield from sorted(root.rglob("*.py"))


def _matches_forbidden(module: str, forbidden_modules: Iterable[str]) -> bool:
    return any(
        module == forbidden or module.startswith(f"{forbidden}.") for forbidden in forbidden_modules
    )


def _imported_modules(tree: ast.AST) -> Iterable[tuple[int, str]]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            yield node.lineno, node.module


def scan_file(file_path: Path, layer: str) -> list[Violation]:
    forbidden = LAYER_RULES[layer]
    tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
    return [
        Violation(file_path=file_path, line=line, module=module, layer=layer)
        for line, module in _imported_modules(tree)
        if _matches_forbidden(module, forbidden)
    ]


def find_violations(paths_by_layer: dict[str, Sequence[Path]]) -> list[Violation]:
    violations: list[Violation] = []
    for layer, paths in paths_by_layer.items():
        for path in paths:
            for file_path in _python_files(path):
                violations.extend(scan_file(file_path, layer))
    return violations


def default_paths() -> dict[str, Sequence[Path]]:
    return {layer: [SRC_ROOT / layer] for layer in LAYER_RULES}


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Layering check: domain and application must not import outer layers."
    )
    parser.add_argument(
        "--layer",
        choices=sorted(LAYER_RULES),
        help="Only check one layer.",
    )
    parser.add_argument(
        "--path",
        action="append",
        default=[],
        help="Path to scan for the selected layer (repeatable).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.layer:
        paths = [Path(item) for item in args.path] or [SRC_ROOT / args.layer]
        paths_by_layer: dict[str, Sequence[Path]] = {args.layer: paths}
    else:
        paths_by_layer = default_paths()

    violations = find_violations(paths_by_layer)
    if not violations:
        print("depcheck passed")
        return 0

    print("depcheck failed: forbidden imports detected")
    for violation in violations:
        print(f"{violation.file_path}:{violation.line} [{violation.layer}] -> {violation.module}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
