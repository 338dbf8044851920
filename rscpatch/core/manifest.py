"""
Reading, analyzing and rewriting ``package.json`` manifests.

Installed-version lookups are bound to the manifest's directory, so a
monorepo package with its own ``node_modules`` is resolved against the
right install.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from rscpatch.exceptions import FileOperationError, ParseError
from rscpatch.models.finding import Fix, ManifestAnalysis
from rscpatch.utils.filesystem import find_package_jsons, safe_read_file, safe_write_file
from rscpatch.utils.logger import get_logger
from rscpatch.utils.package_manager import get_installed_version

logger = get_logger("manifest")

PathLike = Union[str, Path]


def read_manifest(path: PathLike) -> Dict[str, Any]:
    """Load a ``package.json`` as a dictionary.

    Raises:
        FileOperationError: The file cannot be read.
        ParseError: The file is not a JSON object.
    """
    content = safe_read_file(path)

    try:
        document = json.loads(content)
    except ValueError as exc:
        raise ParseError(
            f"Invalid JSON: {exc}",
            file_path=str(path),
            line_number=getattr(exc, "lineno", None),
        ) from exc

    if not isinstance(document, dict):
        raise ParseError("package.json must contain a JSON object", file_path=str(path))

    return document


def analyze_package_json(
    path: PathLike,
    resolver,
    use_package_manager: bool = True,
) -> ManifestAnalysis:
    """Evaluate every watched dependency declared in one manifest.

    Args:
        path: ``package.json`` to analyze.
        resolver: :class:`~rscpatch.core.resolver.Resolver` to evaluate with.
        use_package_manager: Allow installed-version lookups to run the
            package manager; ``node_modules`` is read either way.

    Raises:
        FileOperationError: The manifest cannot be read.
        ParseError: The manifest is not a JSON object.
    """
    manifest_path = Path(path)
    document = read_manifest(manifest_path)
    directory = manifest_path.parent

    def lookup(package: str) -> Optional[str]:
        return get_installed_version(directory, package, use_package_manager)

    findings = resolver.analyze_manifest(document, installed_lookup=lookup)
    name = document.get("name")

    return ManifestAnalysis(
        path=str(manifest_path),
        name=name if isinstance(name, str) and name else directory.resolve().name,
        findings=findings,
    )


def analyze_project(
    root: PathLike,
    resolver,
    *,
    use_package_manager: bool = True,
    skip_dirs: Iterable[str] = (),
) -> List[ManifestAnalysis]:
    """Analyze every ``package.json`` under ``root``.

    Manifests that cannot be read or parsed are logged and skipped.

    Returns:
        One analysis per readable manifest, vulnerable or not, in walk order.
    """
    analyses: List[ManifestAnalysis] = []

    for manifest_path in find_package_jsons(root, skip_dirs):
        try:
            analyses.append(analyze_package_json(manifest_path, resolver, use_package_manager))
        except (FileOperationError, ParseError) as exc:
            logger.warning("Skipping %s: %s", manifest_path, exc)

    logger.info("Analyzed %d package.json file(s) under %s", len(analyses), root)
    return analyses


def apply_fixes(path: PathLike, fixes: Iterable[Fix]) -> bool:
    """Write planned fixes into a ``package.json``.

    Each fix rewrites its package in the block it came from
    (``dependencies`` or ``devDependencies``) with :attr:`Fix.new_specifier`.
    Fixes without a target, or whose package is no longer declared, are
    skipped. The file is rewritten atomically with a backup, formatted with
    two-space indentation and a trailing newline.

    Returns:
        ``True`` when the file was changed.

    Raises:
        FileOperationError: The manifest cannot be read or written.
        ParseError: The manifest is not a JSON object.
    """
    document = read_manifest(path)
    modified = False

    for fix in fixes:
        new_specifier = fix.new_specifier
        if new_specifier is None or fix.origin_kind is None:
            logger.debug("No applicable target for %s", fix.package)
            continue

        block = document.get(fix.origin_kind.manifest_key)
        if not isinstance(block, dict) or fix.package not in block:
            continue

        if block[fix.package] != new_specifier:
            logger.info("%s: %s -> %s", fix.package, block[fix.package], new_specifier)
            block[fix.package] = new_specifier
            modified = True

    if modified:
        safe_write_file(path, json.dumps(document, indent=2, ensure_ascii=False) + "\n")

    return modified
