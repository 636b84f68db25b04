"""Package-level import rules for billshare, read from docs/trust_zone.md."""

from __future__ import annotations

import ast
import re
from pathlib import Path

import pytest

_PACKAGE = Path(__file__).resolve().parents[1]
_DOC = _PACKAGE / "docs" / "trust_zone.md"

# zone -> zones its packages may import from
_ALLOWED = {
    "Pure": {"Pure"},
    "Privileged": {"Pure", "Privileged"},
    "Orchestrator": {"Pure", "Privileged", "Orchestrator"},
}
# Only the extraction client in runtime talks HTTP
_HTTP_CLIENTS = {"httpx"}


def _zone_map() -> dict[str, str]:
    """Map each billshare subpackage named in the doc to its zone."""
    section = _DOC.read_text(encoding="utf-8").split("Current Directory Mapping", 1)[1]
    section = section.split("Dependency Rules", 1)[0]

    zones: dict[str, str] = {}
    zone = None
    for line in section.splitlines():
        match = re.match(r"^(\s*)-\s+`([^`]+)`", line)
        if not match:
            continue
        indent, name = match.groups()
        if not indent:
            assert name in _ALLOWED, f"Unknown zone {name!r} in {_DOC}"
            zone = name
            continue
        assert zone is not None, f"Package {name!r} listed before any zone"
        assert name not in zones, f"Package {name!r} is listed under {zones[name]} and {zone}"
        zones[name] = zone
    return zones


def _billshare_imports(path: Path) -> set[str]:
    """Subpackages of billshare imported by ``path``, relative imports resolved."""
    package_parts = path.relative_to(_PACKAGE).parent.parts
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))

    targets: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names = [alias.name.split(".") for alias in node.names]
        elif isinstance(node, ast.ImportFrom):
            if node.level:
                base = list(package_parts[: len(package_parts) - node.level + 1])
                names = [["billshare", *base, *(node.module or "").split(".")]]
            else:
                names = [(node.module or "").split(".")]
        else:
            continue
        for parts in names:
            parts = [p for p in parts if p]
            if len(parts) > 1 and parts[0] == "billshare":
                targets.add(parts[1])
    return targets


def _third_party_roots(path: Path) -> set[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    roots: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            roots.update(alias.name.split(".", 1)[0] for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            roots.add(node.module.split(".", 1)[0])
    return roots


def _sources(package: str) -> list[Path]:
    return sorted((_PACKAGE / package).rglob("*.py"))


def test_zone_map_covers_exactly_the_installed_packages() -> None:
    packages = {
        path.parent.name
        for path in _PACKAGE.glob("*/__init__.py")
        if path.parent.name != "tests"
    }

    assert set(_zone_map()) == packages


@pytest.mark.parametrize("package", ["domain", "receipt", "util", "runtime", "application", "cli"])
def test_package_imports_stay_within_allowed_zones(package: str) -> None:
    zones = _zone_map()
    source_zone = zones[package]

    violations = [
        f"{path.relative_to(_PACKAGE)} ({source_zone}) imports billshare.{target} ({zones[target]})"
        for path in _sources(package)
        for target in sorted(_billshare_imports(path))
        if target in zones and zones[target] not in _ALLOWED[source_zone]
    ]

    assert not violations, "\n".join(violations)


def test_pure_packages_are_classified_pure() -> None:
    zones = _zone_map()

    assert {name for name, zone in zones.items() if zone == "Pure"} == {"domain", "receipt", "util"}
    assert zones["runtime"] == "Privileged"


def test_runtime_never_reaches_into_session_or_cli() -> None:
    offenders = {
        str(path.relative_to(_PACKAGE)): sorted(_billshare_imports(path) & {"application", "cli"})
        for path in _sources("runtime")
    }

    assert {path: found for path, found in offenders.items() if found} == {}


def test_util_does_not_import_other_billshare_packages() -> None:
    offenders = [
        f"{path.relative_to(_PACKAGE)}: {sorted(_billshare_imports(path) - {'util'})}"
        for path in _sources("util")
        if _billshare_imports(path) - {"util"}
    ]

    assert not offenders, "\n".join(offenders)


def test_http_client_is_only_used_by_runtime() -> None:
    offenders = [
        str(path.relative_to(_PACKAGE))
        for package in _zone_map()
        if package != "runtime"
        for path in _sources(package)
        if _third_party_roots(path) & _HTTP_CLIENTS
    ]

    assert offenders == []


def test_relative_imports_resolve_inside_billshare() -> None:
    # util/__init__.py uses "from .amounts import ..."
    assert _billshare_imports(_PACKAGE / "util" / "__init__.py") == {"util"}
