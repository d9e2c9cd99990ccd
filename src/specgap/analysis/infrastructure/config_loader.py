"""
Configuration loader for gap analysis.

Loads the ``analysis:`` section of ``.specgap/config.yaml``:

    analysis:
      confidenceThreshold: 60
      includeStubs: true
      checkTestCoverage: false
      maxWorkers: 4

Keys may be camelCase or snake_case.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from specgap.analysis.domain.models import GapAnalyzerConfig
from specgap.shared.domain.exceptions import ConfigurationError
from specgap.shared.infrastructure.config import settings
from specgap.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

ANALYSIS_SECTION = "analysis"


def _to_snake_case(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
            result.append(char.lower())
        else:
            result.append(char.lower())
    return "".join(result)


def _convert_keys_to_snake_case(data: Any) -> Any:
    """Recursively convert dictionary keys from camelCase to snake_case."""
    if isinstance(data, dict):
        return {_to_snake_case(str(key)): _convert_keys_to_snake_case(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_convert_keys_to_snake_case(item) for item in data]
    else:
        return data


def default_config_path(project_root: Path) -> Path:
    return project_root / settings.config_dir / settings.config_file


def load_analyzer_config(
    project_root: str | Path,
    config_path: str | Path | None = None,
) -> GapAnalyzerConfig:
    """
    Load analyzer configuration from YAML.

    Args:
        project_root: Project directory (uses .specgap/config.yaml)
        config_path: Explicit config file, overriding the default location

    Returns:
        GapAnalyzerConfig from the file, or defaults when the file is absent

    Raises:
        ConfigurationError: Malformed YAML or invalid option values
    """
    path = Path(config_path) if config_path is not None else default_config_path(Path(project_root))

    if not path.exists():
        logger.debug("analyzer_config_not_found", path=str(path))
        return GapAnalyzerConfig()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f.read())
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}", {"path": str(path)}) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}", {"path": str(path)}) from e

    if data is None:
        return GapAnalyzerConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping in {path}", {"path": str(path)})

    section = data.get(ANALYSIS_SECTION, {})
    if section is None:
        return GapAnalyzerConfig()
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{ANALYSIS_SECTION}' in {path} must be a mapping", {"path": str(path)})

    try:
        config = GapAnalyzerConfig(**_convert_keys_to_snake_case(section))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid analyzer configuration in {path}: {e}", {"path": str(path)}) from e

    logger.info("analyzer_config_loaded", path=str(path), threshold=config.confidence_threshold)
    return config
