"""YAML loader for clip templates."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from pydantic import ValidationError

from .models import ClipTemplate

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


def load_clip_template(file_path: Union[str, Path]) -> ClipTemplate:
    """Load and validate a single clip template from a YAML file.

    Args:
        file_path: Path to the YAML file

    Returns:
        Validated ClipTemplate object

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the YAML is invalid
        ValueError: If the file does not describe exactly one valid template
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(
            f"Template file not found: {path}. "
            f"Suggestion: Check the file path and ensure the file exists."
        )

    if path.suffix.lower() not in YAML_SUFFIXES:
        raise ValueError(
            f"Invalid file extension: {path.suffix}. "
            f"Suggestion: Use .yaml or .yml extension for template files."
        )

    templates = _build_templates(_load_yaml(path), source=str(path))
    if len(templates) != 1:
        raise ValueError(
            f"Expected one template in {path}, found {len(templates)}. "
            f"Suggestion: Use load_clip_templates() for files with a 'templates' list."
        )

    logger.info(f"Loaded clip template '{templates[0].id}' from {path}")
    return templates[0]


def load_clip_templates(path: Union[str, Path]) -> Dict[str, ClipTemplate]:
    """Load every clip template from a YAML file or a directory of them.

    Args:
        path: A YAML file (single template or ``templates`` list) or a
            directory containing such files

    Returns:
        Dictionary mapping template ids to ClipTemplate objects

    Raises:
        ValueError: If nothing could be loaded, or ids collide
    """
    source = Path(path)

    if source.is_dir():
        files = sorted(
            f for f in source.iterdir() if f.is_file() and f.suffix.lower() in YAML_SUFFIXES
        )
        if not files:
            raise ValueError(
                f"No YAML files found in directory: {source}. "
                f"Suggestion: Add .yaml or .yml template files to the directory."
            )
    elif source.exists():
        files = [source]
    else:
        raise FileNotFoundError(
            f"Template path not found: {source}. "
            f"Suggestion: Check the path and ensure it exists."
        )

    templates: Dict[str, ClipTemplate] = {}
    errors: List[str] = []

    for file_path in files:
        try:
            loaded = _build_templates(_load_yaml(file_path), source=str(file_path))
        except (yaml.YAMLError, ValueError) as e:
            errors.append(f"{file_path.name}: {e}")
            continue

        for template in loaded:
            if template.id in templates:
                raise ValueError(
                    f"Duplicate template id '{template.id}' in {file_path.name}. "
                    f"Suggestion: Give every template a unique id."
                )
            templates[template.id] = template

    if errors and not templates:
        raise ValueError(
            "Failed to load any template files. Errors:\n" + "\n".join(errors)
        )
    for error in errors:
        logger.warning(f"Skipped template file {error}")

    return templates


def parse_clip_template(yaml_content: str) -> ClipTemplate:
    """Validate a single clip template from a YAML string.

    Raises:
        yaml.YAMLError: If the YAML is invalid
        ValueError: If the content is not one valid template
    """
    try:
        data = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(
            f"Failed to parse YAML: {e}. "
            f"Suggestion: Check YAML syntax using a validator."
        ) from e

    templates = _build_templates(data, source="<string>")
    if len(templates) != 1:
        raise ValueError(f"Expected one template, found {len(templates)}")
    return templates[0]


def _load_yaml(file_path: Path) -> Any:
    """Load YAML file using yaml.safe_load."""
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(
            f"Failed to parse YAML file {file_path}: {e}. "
            f"Suggestion: Check YAML syntax using a validator. "
            f"Error details: {_extract_yaml_error_details(e)}"
        ) from e


def _build_templates(data: Any, source: str) -> List[ClipTemplate]:
    """Turn loaded YAML data into validated templates."""
    if not isinstance(data, dict):
        raise ValueError(
            f"YAML in {source} must contain a mapping at the root level. "
            f"Got {type(data).__name__} instead."
        )

    entries = data["templates"] if "templates" in data else [data]
    if not isinstance(entries, list):
        raise ValueError(f"'templates' in {source} must be a list")

    templates = []
    for i, entry in enumerate(entries):
        try:
            templates.append(ClipTemplate.model_validate(entry))
        except ValidationError as e:
            raise ValueError(
                f"Template validation failed for {source} (entry {i}):\n{e}"
            ) from e
    return templates


def _extract_yaml_error_details(error: yaml.YAMLError) -> str:
    """Extract useful details from YAML error for better error messages."""
    mark = getattr(error, "problem_mark", None)
    if mark is not None:
        return f"Line {mark.line + 1}, Column {mark.column + 1}"
    return str(error)
