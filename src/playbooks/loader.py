"""PlaybookLoader - loads and validates playbook definitions from YAML files."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ValidationError

from .models import Playbook

logger = logging.getLogger(__name__)

PLAYBOOK_SUFFIXES = (".yaml", ".yml")
PLAYBOOK_FILENAME = "playbook.yaml"


class PlaybookLoadError(Exception):
    """Raised when a playbook cannot be loaded or validated."""

    pass


class PlaybookInfo(BaseModel):
    """Summary of a playbook found on disk."""

    id: str
    name: str
    description: Optional[str] = None
    version: Optional[str] = None
    path: str


class PlaybookLoader:
    """
    Loads playbook definitions from YAML files.

    The loader handles:
    - YAML parsing
    - Pydantic validation of playbook structure
    - Discovery of playbooks in a directory

    Step input templates (``{{ variables.x }}``) are left untouched; they
    are resolved at execution time.

    Example:
        loader = PlaybookLoader()
        playbook = loader.load_from_file("playbooks/release.yaml")
    """

    def load_from_file(self, file_path: Union[str, Path]) -> Playbook:
        """
        Load a playbook from a YAML file.

        Args:
            file_path: Path to the YAML file

        Returns:
            Validated Playbook instance

        Raises:
            PlaybookLoadError: If file cannot be read, parsed, or validated
        """
        file_path = Path(file_path).expanduser()

        if not file_path.exists():
            raise PlaybookLoadError(f"Playbook file not found: {file_path}")

        if not file_path.is_file():
            raise PlaybookLoadError(f"Path is not a file: {file_path}")

        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise PlaybookLoadError(f"Failed to read file {file_path}: {e}") from e

        return self.load_from_string(content, source=str(file_path))

    def load_from_string(self, yaml_content: str, source: str = "<string>") -> Playbook:
        """
        Load a playbook from a YAML string.

        Args:
            yaml_content: YAML content as string
            source: Where the content came from, used in error messages

        Returns:
            Validated Playbook instance

        Raises:
            PlaybookLoadError: If YAML cannot be parsed or validated
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise PlaybookLoadError(f"Failed to parse YAML in {source}: {e}") from e

        if not isinstance(data, dict):
            raise PlaybookLoadError(f"YAML content in {source} must be a mapping")

        return self.load_from_dict(data, source=source)

    def load_from_dict(self, data: Dict[str, Any], source: str = "<dict>") -> Playbook:
        """
        Load a playbook from a dictionary.

        Args:
            data: Dictionary representation of playbook
            source: Where the data came from, used in error messages

        Returns:
            Validated Playbook instance

        Raises:
            PlaybookLoadError: If validation fails
        """
        if "name" not in data:
            raise PlaybookLoadError(f"Playbook in {source} must have a 'name' field")

        if not isinstance(data.get("steps"), list):
            raise PlaybookLoadError(f"Playbook in {source} must have a 'steps' list")

        for i, step in enumerate(data["steps"]):
            if not isinstance(step, dict):
                raise PlaybookLoadError(f"Step {i} in {source} must be a mapping")
            if "action" not in step:
                raise PlaybookLoadError(f"Step {i} in {source} must have an 'action' field")

        try:
            return Playbook.model_validate(data)
        except ValidationError as e:
            raise PlaybookLoadError(f"Playbook validation failed for {source}: {e}") from e

    def list_playbooks(self, directory: Union[str, Path]) -> List[PlaybookInfo]:
        """
        Find playbooks in a directory.

        Both ``<dir>/<id>.yaml`` files and ``<dir>/<id>/playbook.yaml``
        folders are recognised. Files that fail to load are skipped.

        Args:
            directory: Directory to scan

        Returns:
            PlaybookInfo entries sorted by id
        """
        directory = Path(directory).expanduser()
        if not directory.is_dir():
            return []

        candidates: Dict[str, Path] = {}
        for entry in directory.iterdir():
            if entry.is_file() and entry.suffix in PLAYBOOK_SUFFIXES:
                candidates[entry.stem] = entry
            elif entry.is_dir() and (entry / PLAYBOOK_FILENAME).is_file():
                candidates[entry.name] = entry / PLAYBOOK_FILENAME

        infos: List[PlaybookInfo] = []
        for playbook_id, path in sorted(candidates.items()):
            try:
                playbook = self.load_from_file(path)
            except PlaybookLoadError as e:
                logger.warning("Skipping playbook %s: %s", path, e)
                continue

            infos.append(
                PlaybookInfo(
                    id=playbook_id,
                    name=playbook.name,
                    description=playbook.description,
                    version=playbook.version,
                    path=str(path),
                )
            )

        return infos
