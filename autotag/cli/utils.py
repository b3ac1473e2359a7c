"""CLI utility functions for autotag package.

This module provides utility functions for the CLI including configuration
loading, scenario file loading and console output.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from rich.console import Console
from rich.markup import escape

from autotag.subjects.models import SubjectRecord

if TYPE_CHECKING:
    from autotag.config import AutotagConfig

console = Console()


class TagRule(BaseModel):
    """One tag of a rules file.

    Attributes
    ----------
    constraint : str
        Constraint expression; empty for a plain tag.
    options : str
        Constraint options (``am=1;`` add only, ``am=2;`` remove only).
    enabled : bool
        Whether the constraint is evaluated.
    group : str | None
        Tag group.
    max_members : int
        Member limit; 0 means unlimited.
    exec_on_assign : bool
        Whether the tag runs actions on assignment.
    """

    model_config = ConfigDict(extra="forbid")

    constraint: str = ""
    options: str = ""
    enabled: bool = True
    group: str | None = None
    max_members: int = Field(default=0, ge=0)
    exec_on_assign: bool = False


class RulesFile(BaseModel):
    """Contents of a rules file.

    Examples
    --------
    >>> rules = RulesFile.model_validate(
    ...     {"tags": {"Large": {"constraint": "size > 100"}}}
    ... )
    >>> rules.tags["Large"].constraint
    'size > 100'
    """

    model_config = ConfigDict(extra="forbid")

    tags: dict[str, TagRule] = Field(default_factory=dict)
    parameters: dict[str, float] = Field(default_factory=dict)


def load_config_for_cli(
    config_file: str | None,
    profile: str,
    verbose: bool,
) -> AutotagConfig:
    """Load configuration with CLI options.

    Parameters
    ----------
    config_file : str | None
        Path to configuration file (None to use profile defaults).
    profile : str
        Configuration profile name (default, dev, test).
    verbose : bool
        Whether to switch logging to DEBUG.

    Returns
    -------
    AutotagConfig
        Loaded configuration object.
    """
    # Lazy import to avoid circular import
    from autotag.config import load_config

    config_path = Path(config_file) if config_file else None

    try:
        config = load_config(config_path=config_path, profile=profile, use_env=True)
    except FileNotFoundError:
        print_error(f"Configuration file not found: {config_file}", exit_code=1)
        raise  # For type checking
    except Exception as e:
        print_error(f"Failed to load configuration: {e}", exit_code=1)
        raise  # For type checking

    if verbose:
        config.logging.level = "DEBUG"
        console.print(f"[green]✓[/green] Loaded configuration from profile: {profile}")
        if config_file:
            console.print(f"[green]✓[/green] Applied overrides from: {config_file}")
    return config


def _read_yaml(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def load_subjects(path: Path) -> tuple[list[SubjectRecord], dict[str, list[str]]]:
    """Load subjects from a YAML file.

    The file holds a list of subjects, either at the top level or under a
    ``subjects`` key. Each entry may carry a ``tags`` list naming the tags
    the subject already has.

    Parameters
    ----------
    path : Path
        YAML file.

    Returns
    -------
    tuple[list[SubjectRecord], dict[str, list[str]]]
        The subjects, and the initial tag names per subject id.

    Raises
    ------
    ValueError
        If the file does not hold a list of subject mappings or a subject is
        invalid.
    """
    data = _read_yaml(path)
    entries = data.get("subjects") if isinstance(data, dict) else data
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise ValueError(f"Expected a list of subjects in {path}")

    subjects: list[SubjectRecord] = []
    initial_tags: dict[str, list[str]] = {}
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"Subject #{index + 1} in {path} is not a mapping")
        fields = dict(entry)
        tag_names = fields.pop("tags", None) or []
        fields.setdefault("subject_id", f"subject-{index + 1}")
        fields["subject_id"] = str(fields["subject_id"])
        try:
            subject = SubjectRecord.model_validate(fields)
        except ValidationError as e:
            raise ValueError(f"Invalid subject #{index + 1} in {path}: {e}") from e
        subjects.append(subject)
        initial_tags[subject.subject_id] = [str(name) for name in tag_names]
    return subjects, initial_tags


def load_rules(path: Path) -> RulesFile:
    """Load a rules file.

    Raises
    ------
    ValueError
        If the file content is invalid.
    """
    data = _read_yaml(path) or {}
    try:
        return RulesFile.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid rules file {path}: {e}") from e


def print_error(message: str, exit_code: int = 1) -> None:
    """Print error message and exit.

    Parameters
    ----------
    message : str
        Error message to display.
    exit_code : int
        Exit code (default: 1). Pass 0 to not exit.
    """
    console.print(f"[red]✗ Error:[/red] {escape(message)}")
    if exit_code != 0:
        sys.exit(exit_code)


def print_success(message: str) -> None:
    """Print success message."""
    console.print(f"[green]✓ {escape(message)}[/green]")


def print_warning(message: str) -> None:
    """Print warning message."""
    console.print(f"[yellow]⚠ Warning:[/yellow] {escape(message)}")


def print_info(message: str) -> None:
    """Print info message."""
    console.print(f"[blue]ℹ Info:[/blue] {escape(message)}")
