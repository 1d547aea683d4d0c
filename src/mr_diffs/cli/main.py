"""CLI entry point for inspecting merge request diffs in a local repository."""
import argparse
from dotenv import load_dotenv
import json
import sys
import traceback
from pathlib import Path

from loguru import logger

from mr_diffs.adapters.endpoint import render_result
from mr_diffs.config import DiffSettings
from mr_diffs.diffs.exceptions import (
    DiffError,
    FeatureDisabledError,
    InvalidWindowError,
    NotFoundError,
    TreeResolutionError,
)
from mr_diffs.diffs.service import MergeRequestDiffService
from mr_diffs.models import (
    BatchDiffResult,
    DiffRequest,
    MergeRequestRef,
    PaginationWindow,
    RequestContext,
    RequestMode,
    RevisionPair,
    SinglePathResult,
)
from mr_diffs.utils.diff_generator import render_unified_diff

load_dotenv()

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_NOT_FOUND = 2
EXIT_FEATURE_DISABLED = 3
EXIT_STORE_ERROR = 4
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130

DEFAULT_MERGE_REQUEST_ID = 0


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mr-diffs",
        description="Show merge request diffs between two revisions of a git repository",
    )
    parser.add_argument("repo_path", type=str, help="Path to the git repository")
    parser.add_argument("base", type=str, help="Base (target) revision")
    parser.add_argument("head", type=str, help="Head (source) revision")
    parser.add_argument("--old-path", type=str, default=None, help="Show only this file (old side)")
    parser.add_argument("--new-path", type=str, default=None, help="Show only this file (new side)")
    parser.add_argument("--page", type=int, default=None, help="Page to show in batch mode")
    parser.add_argument(
        "--per-page",
        type=int,
        default=None,
        help="Files per page in batch mode (default: MR_DIFFS_PER_PAGE or 20)",
    )
    parser.add_argument(
        "--view",
        type=str,
        default=None,
        help="Preferred diff view: inline or parallel",
    )
    parser.add_argument(
        "--merge-request-id",
        type=int,
        default=DEFAULT_MERGE_REQUEST_ID,
        help="Merge request id used for new note defaults",
    )
    parser.add_argument(
        "--commit-id",
        type=str,
        default=None,
        help="Commit being viewed, copied into new note defaults",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--output-json", action="store_true", help="Output results as JSON"
    )
    return parser


def configure_logging(verbose: bool) -> None:
    """Route log output to stderr at DEBUG (verbose) or WARNING level."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def validate_repo_path(raw_path: str) -> str:
    """Validate and resolve the repository path.

    Raises:
        SystemExit: If path is not a valid directory.
    """
    resolved = Path(raw_path).resolve()
    if not resolved.is_dir():
        print(f"Error: '{raw_path}' is not a valid directory.", file=sys.stderr)
        raise SystemExit(EXIT_INVALID_INPUT)
    return str(resolved)


def request_mode(args: argparse.Namespace) -> RequestMode:
    """Pick the request mode from the flags that were given."""
    if args.old_path is not None or args.new_path is not None:
        return RequestMode.SINGLE_PATH
    if args.page is not None or args.per_page is not None:
        return RequestMode.BATCH
    return RequestMode.FULL


def create_service(repo_path: str, settings: DiffSettings) -> MergeRequestDiffService:
    """Create the diffs service over a git repository."""
    from mr_diffs.storage.git_store import GitObjectStore

    return MergeRequestDiffService(GitObjectStore(repo_path), settings=settings)


def build_request(args: argparse.Namespace, service: MergeRequestDiffService) -> DiffRequest:
    """Resolve the revisions and turn parsed arguments into a DiffRequest."""
    revision_pair = RevisionPair(
        base_tree_id=service.store.resolve_tree(args.base),
        head_tree_id=service.store.resolve_tree(args.head),
    )
    merge_request = MergeRequestRef(
        id=args.merge_request_id,
        project_id=0,
        iid=args.merge_request_id,
        revision_pair=revision_pair,
    )
    mode = request_mode(args)
    window = None
    if mode == RequestMode.BATCH:
        window = PaginationWindow(
            page=args.page if args.page is not None else 1,
            per_page=args.per_page if args.per_page is not None else service.settings.default_per_page,
        )
    return DiffRequest(
        merge_request=merge_request,
        mode=mode,
        old_path=args.old_path,
        new_path=args.new_path if args.new_path is not None else args.old_path,
        window=window,
        view_preference=args.view,
    )


def format_result_json(result) -> str:
    """Serialize a service result to a JSON string."""
    payload = render_result(result)
    payload["kind"] = result.kind
    payload["view"] = result.view.value if result.view is not None else None
    return json.dumps(payload, indent=2)


def print_result_human(result) -> None:
    """Print a service result as unified diffs."""
    files = [result.diff_file] if isinstance(result, SinglePathResult) else list(result.diff_files)
    for record in files:
        text = render_unified_diff(record)
        label = record.file_path
        print(f"diff {label} ({record.change_kind.value})")
        if text:
            print(text)

    if isinstance(result, BatchDiffResult):
        meta = result.pagination
        next_page = meta.next_page if meta.next_page is not None else "-"
        print(f"\nPage {meta.current_page}/{meta.total_pages} (next: {next_page})")
    if isinstance(result, SinglePathResult):
        state = "disabled" if result.diff_notes_disabled else "enabled"
        print(f"\nDiff notes: {state}")


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        repo_path = validate_repo_path(args.repo_path)
    except SystemExit as exc:
        return exc.code

    try:
        settings = DiffSettings.from_env()
    except ValueError as exc:
        return _handle_error("Invalid configuration", exc, args.verbose, EXIT_INVALID_INPUT)

    try:
        service = create_service(repo_path, settings)
        request = build_request(args, service)
        context = RequestContext(access_verified=True, commit_id=args.commit_id)
        result = service.handle(request, context)

        if args.output_json:
            print(format_result_json(result))
        else:
            print_result_human(result)
        return EXIT_SUCCESS

    except NotFoundError as exc:
        return _handle_error("Not found", exc, args.verbose, EXIT_NOT_FOUND)

    except FeatureDisabledError as exc:
        return _handle_error("Feature disabled", exc, args.verbose, EXIT_FEATURE_DISABLED)

    except InvalidWindowError as exc:
        return _handle_error("Invalid page window", exc, args.verbose, EXIT_INVALID_INPUT)

    except TreeResolutionError as exc:
        return _handle_error("Repository error", exc, args.verbose, EXIT_STORE_ERROR)

    except DiffError as exc:
        return _handle_error("Diff error", exc, args.verbose, EXIT_UNEXPECTED)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)
