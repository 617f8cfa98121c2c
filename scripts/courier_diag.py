"""Courier diagnostics CLI."""

from __future__ import annotations

import argparse
import json

from courier.config import CourierSettings
from courier.errors import GitCommandError
from courier.git import GitRepository, derive_branch_name
from courier.github import parse_repo_slug
from courier.projects import ProjectCatalog, ProjectLoadError, ProjectLoader
from courier.sessions import TaskKind


def load_catalog(settings: CourierSettings) -> ProjectCatalog:
    try:
        return ProjectCatalog.load(ProjectLoader(settings.project_paths))
    except ProjectLoadError as exc:
        print(f"Invalid project configuration: {exc}")
        raise SystemExit(1)


def describe_project(project) -> dict[str, object]:
    record: dict[str, object] = {
        "key": project.key,
        "path": str(project.path),
        "description": project.description,
        "checkout_present": project.exists,
        "main_branch": None,
        "github_repo": project.github_repo,
    }
    if not project.exists:
        return record

    repository = GitRepository(project.path)
    record["main_branch"] = repository.discover_main_branch()
    if record["github_repo"] is None:
        try:
            remote = repository.remote_url()
            record["github_repo"] = parse_repo_slug(remote) if remote else None
        except (GitCommandError, ValueError) as exc:
            record["github_repo_error"] = str(exc)
    return record


def cmd_projects(args: argparse.Namespace) -> None:
    settings = CourierSettings()
    catalog = load_catalog(settings)
    records = [describe_project(project) for project in catalog.values()]
    if args.json:
        print(json.dumps(records, indent=2))
        return
    if not records:
        print("No projects configured.")
        return
    for record in records:
        marker = "ok" if record["checkout_present"] else "missing"
        print(
            f"{record['key']} [{marker}] {record['path']}"
            f" main={record['main_branch'] or '-'} repo={record['github_repo'] or '-'}"
        )


def cmd_branch_name(args: argparse.Namespace) -> None:
    prompt = " ".join(args.prompt) if args.prompt else None
    if args.issue is None and not prompt:
        print("Provide --issue or a prompt")
        raise SystemExit(2)
    print(derive_branch_name(issue_number=args.issue, task_kind=args.kind, prompt=prompt))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Courier diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_projects = sub.add_parser("projects", help="List configured projects")
    p_projects.add_argument("--json", action="store_true", help="Output JSON")
    p_projects.set_defaults(func=cmd_projects)

    p_branch = sub.add_parser("branch-name", help="Preview the branch a task would use")
    p_branch.add_argument("--issue", type=int, default=None)
    p_branch.add_argument(
        "--kind",
        choices=[kind.value for kind in TaskKind],
        default=TaskKind.AUTO.value,
    )
    p_branch.add_argument("prompt", nargs="*")
    p_branch.set_defaults(func=cmd_branch_name)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
