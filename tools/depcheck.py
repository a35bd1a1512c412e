from __future__ import annotations

import argparse
import ast
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

SRC_ROOT = Path(__file__).resolve().parents[1] / "src" / "rms"

FRAMEWORK_MODULES = frozenset(
    {
        "fastapi",
        "starlette",
        "pydantic",
        "sqlalchemy",
        "alembic",
        "redis",
        "httpx",
        "opentelemetry",
        "prometheus_client",
        "jwt",
        "bcrypt",
    }
)

# Inner layers may never reach outward.
LAYER_POLICY: dict[str, frozenset[str]] = {
    "domain": FRAMEWORK_MODULES
    | {"rms.application", "rms.infrastructure", "rms.api"},
    "application": frozenset(
        {"fastapi", "starlette", "sqlalchemy", "redis", "jwt", "bcrypt"}
    )
    | {"rms.infrastructure", "rms.api"},
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
    elif root.is_dir():
        yield from sorted(root.rglob("*.py"))


def _is_forbidden(module: str, forbidden: frozenset[str]) -> bool:
    return any(module == name or module.startswith(f"{name}.") for name in forbidden)


def _imported_modules(tree: ast.AST) -> Iterable[tuple[int, str]]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            yield node.lineno, node.module


def scan_layer(layer: str, root: Path) -> list[Violation]:
    forbidden = LAYER_POLICY[layer]
    violations: list[Violation] = []
    for file_path in _python_files(root):
        tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
        for line, module in _imported_modules(tree):
            if _is_forbidden(module, forbidden):
                violations.append(
                    Violation(file_path=file_path, line=line, module=module, layer=layer)
                )
    return violations


def find_violations(layers: Sequence[str], src_root: Path = SRC_ROOT) -> list[Violation]:
    violations: list[Violation] = []
    for layer in layers:
        violations.extend(scan_layer(layer, src_root / layer))
    return violations


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Layering check for src/rms imports.")
    parser.add_argument(
        "--layer",
        action="append",
        choices=sorted(LAYER_POLICY),
        default=[],
        help="Layer to check (repeatable). Defaults to every layer with a policy.",
    )
    parser.add_argument("--src", type=Path, default=SRC_ROOT, help="Root of the rms package.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    layers = args.layer or sorted(LAYER_POLICY)

    violations = find_violations(layers, args.src)
    if not violations:
        print(f"depcheck passed ({', '.join(layers)})")
        return 0

    print("depcheck failed: forbidden imports detected")
    for violation in violations:
        print(f"[{violation.layer}] {violation.file_path}:{violation.line} -> {violation.module}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
