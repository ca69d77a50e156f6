import asyncio
import json
import os
import zipfile
from typing import Any, Dict, Optional, Union

from .assets import AssetRequest
from .diagnostics import DiagnosticCollector
from .errors import AssetRetrievalError, ProjectParseError
from .project import Project
from .sb3_decoder import project_from_sb3_json
from .sb3_encoder import EncodeOptions, project_to_sb3_json
from .utils import ensure_dir


def parse_project_json(data: Union[str, bytes]) -> Dict[str, Any]:
    """Parse project.json text, raising ProjectParseError when it is not JSON."""
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ProjectParseError("project.json is not UTF-8 text", str(exc)) from exc
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ProjectParseError("project.json is not valid JSON", str(exc)) from exc
    if not isinstance(parsed, dict):
        raise ProjectParseError("project.json is not a JSON object")
    return parsed


def read_sb3(sb3_path: str, collector: Optional[DiagnosticCollector] = None) -> Project:
    """Read an .sb3 archive into a Project; assets come from the archive."""
    if not os.path.exists(sb3_path):
        raise ProjectParseError(f"{sb3_path} not found")
    if not zipfile.is_zipfile(sb3_path):
        raise ProjectParseError(f"{sb3_path} is not an sb3 archive")

    with zipfile.ZipFile(sb3_path, "r") as archive:
        names = set(archive.namelist())
        if "project.json" not in names:
            raise ProjectParseError("project.json not found in the archive.", sb3_path)

        with archive.open("project.json") as handle:
            project_json = parse_project_json(handle.read())

        def read_asset(request: AssetRequest) -> bytes:
            if request.md5ext not in names:
                raise AssetRetrievalError(
                    f"Asset for {request.kind} '{request.name}' missing from archive",
                    request.md5ext,
                    request,
                )
            return archive.read(request.md5ext)

        return asyncio.run(project_from_sb3_json(project_json, read_asset, collector))


def write_sb3(
    project: Project,
    output_path: str,
    options: EncodeOptions = EncodeOptions(),
    collector: Optional[DiagnosticCollector] = None,
) -> DiagnosticCollector:
    """Encode a Project and write it, with its assets, as an .sb3 archive."""
    if collector is None:
        collector = DiagnosticCollector()
    project_json = project_to_sb3_json(project, options, collector)

    ensure_dir(os.path.dirname(output_path) or ".")
    with zipfile.ZipFile(output_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("project.json", json.dumps(project_json))
        seen_assets = set()
        for target in project.targets:
            for asset in [*target.costumes, *target.sounds]:
                if asset.md5ext in seen_assets or asset.asset is None:
                    continue
                seen_assets.add(asset.md5ext)
                archive.writestr(asset.md5ext, asset.asset)
    return collector
