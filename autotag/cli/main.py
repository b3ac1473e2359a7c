"""Main CLI entry point for autotag package.

This module provides the main CLI command group and the commands that
compile, evaluate and run constraints.
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from autotag import __version__
from autotag.cli.config import config
from autotag.cli.utils import (
    console,
    load_config_for_cli,
    load_rules,
    load_subjects,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from autotag.config import AutotagConfig, ParameterStore, configure_logging
from autotag.dsl import CompileError, EvaluationContext, Evaluator, compile_expression
from autotag.engine import ConstraintHandler
from autotag.subjects import SubjectCollection, SubjectRecord
from autotag.tags import MemoryTagStore


@click.group()
@click.version_option(version=__version__, prog_name="autotag")
@click.option(
    "--config-file",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: use profile defaults)",
)
@click.option(
    "--profile",
    "-p",
    type=click.Choice(["default", "dev", "test"], case_sensitive=False),
    default="default",
    help="Configuration profile to use",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    profile: str,
    verbose: bool,
) -> None:
    r"""Automatic tagging by constraint expressions.

    Compiles tag constraints, evaluates them against subjects and runs the
    constraint engine over a set of tags and subjects.

    \b
    Examples:
        # Show version
        $ autotag --version

        # Check an expression
        $ autotag check 'hasTag("Movies") && size > 1024'

        # Evaluate an expression against subjects
        $ autotag eval 'shareratio >= 2.0' subjects.yaml

        # Apply a set of tag rules to subjects
        $ autotag --profile dev run rules.yaml subjects.yaml
    """
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["profile"] = profile.lower()
    ctx.obj["verbose"] = verbose


def _load_config(ctx: click.Context) -> AutotagConfig:
    config_file = ctx.obj.get("config_file")
    cfg = load_config_for_cli(
        config_file=str(config_file) if config_file else None,
        profile=ctx.obj.get("profile", "default"),
        verbose=ctx.obj.get("verbose", False),
    )
    configure_logging(cfg.logging)
    return cfg


def _populate_tags(
    store: MemoryTagStore,
    subjects: list[SubjectRecord],
    initial_tags: dict[str, list[str]],
) -> None:
    """Create the tags named by subjects and give them their members."""
    for subject in subjects:
        for name in initial_tags.get(subject.subject_id, []):
            matching = store.tags_by_name(name)
            tag = matching[0] if matching else store.create_tag(name)
            tag.add_member(subject)


@cli.command()
@click.argument("expression")
def check(expression: str) -> None:
    r"""Compile an expression and describe it.

    \b
    Examples:
        $ autotag check 'seeding_for > h2s(10)'
        $ autotag check '!(hasTag("A") && hasTag("B")) || hasTag("C")'
    """
    try:
        compiled = compile_expression(expression)
    except CompileError as e:
        print_error(f"Invalid constraint: {e}")
        return

    print_success("Expression compiled")
    console.print(f"  Normalized: {escape(compiled.to_expression())}")
    console.print(f"  Dependency level: {compiled.dependency_level.name}")
    console.print(f"  Depends on running state: {compiled.depends_on_running_state}")
    for warning in compiled.warnings:
        print_warning(warning)


@cli.command(name="eval")
@click.argument("expression")
@click.argument(
    "subjects_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.pass_context
def eval_command(ctx: click.Context, expression: str, subjects_file: Path) -> None:
    r"""Evaluate an expression against every subject in a YAML file.

    \b
    Examples:
        $ autotag eval 'size > 1024' subjects.yaml
    """
    cfg = _load_config(ctx)

    try:
        subjects, initial_tags = load_subjects(subjects_file)
    except ValueError as e:
        print_error(str(e))
        return

    store = MemoryTagStore()
    _populate_tags(store, subjects, initial_tags)

    try:
        compiled = compile_expression(expression, tag_lookup=store.tags_by_name)
    except CompileError as e:
        print_error(f"Invalid constraint: {e}")
        return

    context = EvaluationContext(
        tag_store=store, parameters=ParameterStore(dict(cfg.parameters))
    )
    evaluator = Evaluator(context)

    table = Table(title=escape(compiled.to_expression()), show_header=True)
    table.add_column("Subject", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Result", justify="center")
    matched = 0
    for subject in subjects:
        result = evaluator.test(compiled.expr, subject, store.tags_for(subject))
        matched += result
        table.add_row(
            subject.subject_id,
            escape(subject.display_name),
            "[green]yes[/green]" if result else "[dim]no[/dim]",
        )
    console.print(table)

    for error in context.errors:
        print_warning(error)
    print_info(f"{matched} of {len(subjects)} subjects match")


@cli.command()
@click.argument(
    "rules_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "subjects_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.pass_context
def run(ctx: click.Context, rules_file: Path, subjects_file: Path) -> None:
    r"""Apply the tag rules of a rules file to subjects.

    Tags and their constraints come from RULES_FILE, subjects (and the tags
    they already carry) from SUBJECTS_FILE. The initial constraint pass is
    run to completion and the resulting tag memberships are shown.

    \b
    Rules file:
        tags:
          Large:
            constraint: size > 1073741824
          Stopped:
            constraint: isStopped()
            options: am=1;
        parameters:
          Stop Ratio: 2.0

    \b
    Examples:
        $ autotag run rules.yaml subjects.yaml
    """
    cfg = _load_config(ctx)

    try:
        rules = load_rules(rules_file)
        subjects, initial_tags = load_subjects(subjects_file)
    except ValueError as e:
        print_error(str(e))
        return

    store = MemoryTagStore()
    for name, rule in rules.tags.items():
        store.create_tag(
            name,
            group=rule.group,
            has_exec_on_assign=rule.exec_on_assign,
            max_members=rule.max_members,
        )
    _populate_tags(store, subjects, initial_tags)

    collection = SubjectCollection(subjects)
    parameters = ParameterStore({**cfg.parameters, **rules.parameters})
    handler = ConstraintHandler(
        store, collection, parameters=parameters, config=cfg.engine
    )
    try:
        # tags exist before any constraint compiles, so hasTag can see them all
        for name, rule in rules.tags.items():
            if rule.constraint.strip():
                tag = store.tags_by_name(name)[0]
                tag.set_constraint(rule.constraint, rule.options, rule.enabled)
        handler.start()
        handler.drain()
    finally:
        handler.stop()

    table = Table(title="Tag memberships", show_header=True)
    table.add_column("Tag", style="cyan", no_wrap=True)
    table.add_column("Members")
    table.add_column("Count", justify="right")
    for tag in store.tags():
        members = sorted(subject.subject_id for subject in tag.members())
        table.add_row(tag.name, ", ".join(members), str(len(members)))
    console.print(table)

    for tag in store.tags():
        if tag.constraint_error:
            print_warning(f"{tag.name}: {tag.constraint_error}")
    print_success(f"Applied {len(rules.tags)} tag rules to {len(subjects)} subjects")


cli.add_command(config)
