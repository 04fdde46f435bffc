"""Load workflow graphs and scenario definitions from JSON or YAML files.

Resolution order for relative paths:
  1. Path as given (relative to the current working directory)
  2. The configured scenario directory (FLOWLAB_SCENARIO_DIR)

A scenario file holds either a single scenario or a bundle
(a top-level `workflows` list).
"""

import json
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from flowlab.exceptions import ScenarioLoadError
from flowlab.types import ScenarioBundle, ScenarioDefinition, WorkflowGraph


def _find_file(path: Union[str, Path], search_dir: Optional[Path]) -> Path:
    """Locate a file: as given > search_dir."""
    p = Path(path)
    if p.exists():
        return p
    if search_dir is not None and not p.is_absolute():
        candidate = Path(search_dir) / p
        if candidate.exists():
            return candidate
    raise ScenarioLoadError(f"File not found: {p}", path=str(p))


def _read_document(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ScenarioLoadError(f"Could not parse {path}: {exc}", path=str(path)) from exc
    if not isinstance(raw, dict):
        raise ScenarioLoadError(f"{path} must contain a mapping at the top level", path=str(path))
    return raw


def load_graph(path: Union[str, Path], search_dir: Optional[Path] = None) -> WorkflowGraph:
    """Load a workflow graph (nodes + connections) from a .json/.yaml file.

    Raises:
        ScenarioLoadError: if the file is missing, unparsable or off-schema.
    """
    resolved = _find_file(path, search_dir)
    raw = _read_document(resolved)
    try:
        return WorkflowGraph.model_validate(raw)
    except ValidationError as exc:
        raise ScenarioLoadError(
            f"Invalid workflow graph in {resolved}",
            path=str(resolved),
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def load_graphs(path: Union[str, Path], search_dir: Optional[Path] = None) -> dict[str, WorkflowGraph]:
    """Load one graph per sub-workflow from a `{workflowId: graph}` mapping file."""
    resolved = _find_file(path, search_dir)
    raw = _read_document(resolved)
    graphs = {}
    for workflow_id, entry in raw.items():
        try:
            graphs[str(workflow_id)] = WorkflowGraph.model_validate(entry)
        except ValidationError as exc:
            raise ScenarioLoadError(
                f"Invalid workflow graph '{workflow_id}' in {resolved}",
                path=str(resolved),
                details={"errors": exc.errors(include_url=False)},
            ) from exc
    return graphs


def load_scenario(
    path: Union[str, Path], search_dir: Optional[Path] = None
) -> Union[ScenarioDefinition, ScenarioBundle]:
    """Load a scenario (or multi-workflow bundle) from a .json/.yaml file.

    Raises:
        ScenarioLoadError: if the file is missing, unparsable or off-schema.
    """
    resolved = _find_file(path, search_dir)
    raw = _read_document(resolved)
    model = ScenarioBundle if "workflows" in raw else ScenarioDefinition
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ScenarioLoadError(
            f"Invalid scenario in {resolved}",
            path=str(resolved),
            details={"errors": exc.errors(include_url=False)},
        ) from exc
