"""Project summary collector: name, language, stack and source size."""

from __future__ import annotations

import json
import os
import re
import tomllib
from pathlib import Path

from hud_core.models import PanelData

LANGUAGE_MARKERS = [
    ("pyproject.toml", "Python"),
    ("setup.py", "Python"),
    ("requirements.txt", "Python"),
    ("tsconfig.json", "TypeScript"),
    ("package.json", "JavaScript"),
    ("Cargo.toml", "Rust"),
    ("go.mod", "Go"),
]

LANGUAGE_EXTENSIONS = {
    "Python": (".py",),
    "TypeScript": (".ts", ".tsx"),
    "JavaScript": (".js", ".jsx", ".mjs", ".cjs"),
    "Rust": (".rs",),
    "Go": (".go",),
}

STACK_KEYWORDS = {
    "django": "django",
    "fastapi": "fastapi",
    "flask": "flask",
    "pytest": "pytest",
    "rich": "rich",
    "textual": "textual",
    "react": "react",
    "ink": "ink",
    "next": "next",
    "express": "express",
    "vitest": "vitest",
    "jest": "jest",
}

SKIP_DIRS = {".git", "node_modules", ".venv", "venv", "__pycache__", "dist", "build", ".mypy_cache", ".tox"}
MAX_FILES = 5000
REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9_.\-]+)")


def detect_language(root: Path) -> str | None:
    for marker, language in LANGUAGE_MARKERS:
        if (root / marker).exists():
            return language
    return None


def detect_stack(dependencies: list[str]) -> list[str]:
    found = []
    for dep in dependencies:
        name = dep.lower()
        if name in STACK_KEYWORDS and STACK_KEYWORDS[name] not in found:
            found.append(STACK_KEYWORDS[name])
    return found[:5]


def _dependency_name(spec: str) -> str:
    match = REQUIREMENT_NAME_RE.match(spec)
    return match.group(1) if match else ""


def _from_pyproject(path: Path) -> tuple[str | None, list[str]]:
    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError):
        return None, []
    project = data.get("project") or {}
    poetry = (data.get("tool") or {}).get("poetry") or {}
    name = project.get("name") or poetry.get("name")
    deps = [_dependency_name(spec) for spec in project.get("dependencies") or []]
    deps += list((poetry.get("dependencies") or {}).keys())
    for extra in (project.get("optional-dependencies") or {}).values():
        deps += [_dependency_name(spec) for spec in extra]
    return name, [d for d in deps if d and d != "python"]


def _from_package_json(path: Path) -> tuple[str | None, list[str]]:
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError):
        return None, []
    if not isinstance(data, dict):
        return None, []
    deps = list((data.get("dependencies") or {}).keys()) + list((data.get("devDependencies") or {}).keys())
    return data.get("name"), deps


def _from_setup_py(path: Path) -> tuple[str | None, list[str]]:
    try:
        content = path.read_text()
    except OSError:
        return None, []
    match = re.search(r"name\s*=\s*['\"]([^'\"]+)['\"]", content)
    return (match.group(1) if match else None), []


def project_info(root: Path) -> dict:
    name: str | None = None
    deps: list[str] = []
    for filename, reader in (
        ("pyproject.toml", _from_pyproject),
        ("package.json", _from_package_json),
        ("setup.py", _from_setup_py),
    ):
        path = root / filename
        if path.exists():
            name, deps = reader(path)
            if name:
                break
    return {"name": name or root.resolve().name, "dependencies": deps}


def count_source_files(root: Path, language: str | None) -> dict[str, int]:
    extensions = LANGUAGE_EXTENSIONS.get(language or "", ())
    files = 0
    lines = 0
    if not extensions:
        return {"files": 0, "lines": 0}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")]
        for filename in filenames:
            if not filename.endswith(extensions):
                continue
            files += 1
            try:
                with open(os.path.join(dirpath, filename), "rb") as handle:
                    lines += sum(1 for _ in handle)
            except OSError:
                continue
            if files >= MAX_FILES:
                return {"files": files, "lines": lines}
    return {"files": files, "lines": lines}


def collect(root: Path) -> PanelData:
    info = project_info(root)
    language = detect_language(root)
    stack = detect_stack(info["dependencies"])
    counts = count_source_files(root, language)
    items = [
        {"label": "Language", "value": language or "unknown"},
        {"label": "Stack", "value": ", ".join(stack) if stack else "-"},
        {"label": "Files", "value": str(counts["files"])},
        {"label": "Lines", "value": str(counts["lines"])},
    ]
    return PanelData(
        key="project",
        title="Project",
        status="ok" if language else "warn",
        items=items,
        meta={
            "name": info["name"],
            "language": language,
            "stack": stack,
            "dependencies": len(info["dependencies"]),
            **counts,
        },
        errors=[] if language else ["language not detected"],
    )
