#!/usr/bin/env python3
"""Extract the change history of a git repository as JSON lines.

Clones the repository into a temporary directory, walks every commit reachable
from HEAD and the branch tips, and writes one JSON object per (commit, file)
pair to stdout. Diagnostics and progress go to stderr.
"""

import argparse
import logging
import sys
import tempfile
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

from gitlog.config import ExtractorConfig, parse_context_lines, resolve_credentials
from gitlog.emitter import JsonLinesEmitter
from gitlog.exceptions import ExtractError, get_exit_code
from gitlog.repository import GitRepository
from gitlog.walker import CommitWalker

logger = logging.getLogger(__name__)


@dataclass
class ExtractSummary:
  """Counters reported at the end of a run."""

  commits: int = 0
  merges: int = 0
  written: int = 0
  dropped: int = 0


def extract(
  repo_url: str,
  out: TextIO,
  credentials: Optional[tuple[str, str]] = None,
  nested: bool = False,
  clone_root: Optional[Path] = None,
  context_lines: int = 3,
) -> ExtractSummary:
  """Clone `repo_url` and write its history to `out`.

  Args:
      repo_url: Repository to clone; also recorded on every output line
      out: Stream receiving the JSON lines
      credentials: Optional (username, password) for http(s) basic auth
      nested: Write one line per commit with a changes array
      clone_root: Parent directory for the transient clone
      context_lines: Context lines around each diff hunk

  Returns:
      ExtractSummary with commit and record counters

  Raises:
      ExtractError: On clone failure or the first unresolvable commit
  """
  clone_root = Path(clone_root or ExtractorConfig.CLONE_ROOT)
  clone_root.mkdir(parents=True, exist_ok=True)

  with tempfile.TemporaryDirectory(prefix="clone-", dir=clone_root) as tmpdir:
    logger.info(f"Using tempdir => {tmpdir}")
    repository = GitRepository.clone(
      repo_url,
      Path(tmpdir) / "repo",
      credentials=credentials,
      context_lines=context_lines,
    )
    try:
      walker = CommitWalker(repository, repo_url)
      emitter = JsonLinesEmitter(out, nested=nested)
      try:
        for commit in walker.iter_commits():
          emitter.emit(commit)
      finally:
        emitter.flush()
    finally:
      repository.close()

  return ExtractSummary(
    commits=walker.visited,
    merges=walker.merges,
    written=emitter.written,
    dropped=emitter.dropped,
  )


def build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(
    prog="gitlog-extract",
    description="Extract per-file change history of a git repository as JSON lines",
  )
  parser.add_argument("repo_url", help="URL (or local path) of the repository to clone")
  parser.add_argument("--username", help="Username for http(s) basic auth")
  parser.add_argument(
    "--password",
    help="Password for http(s) basic auth (default: GITLOG_PASSWORD or keyring)",
  )
  parser.add_argument(
    "--format",
    choices=["flat", "nested"],
    default="flat",
    help="flat: one line per (commit, file); nested: one line per commit",
  )
  parser.add_argument(
    "--output", "-o", type=Path, help="Write records to this file instead of stdout"
  )
  parser.add_argument(
    "--clone-root", type=Path, help="Parent directory for the temporary clone"
  )
  parser.add_argument(
    "--context-lines",
    default=ExtractorConfig.CONTEXT_LINES,
    help="Context lines around each diff hunk (env GITLOG_CONTEXT_LINES)",
  )
  parser.add_argument(
    "--log-level", default=ExtractorConfig.LOG_LEVEL, help="Logging level for stderr"
  )
  return parser


def main(argv=None):
  """Main entry point."""
  args = build_parser().parse_args(argv)

  # Configure logging
  logging.basicConfig(
    level=args.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
  )

  try:
    args.context_lines = parse_context_lines(args.context_lines)
    credentials = resolve_credentials(args.username, args.password)
    if args.output is not None:
      with open(args.output, "w", encoding="utf-8") as out:
        summary = _run(args, out, credentials)
    else:
      summary = _run(args, sys.stdout, credentials)

  except ExtractError as e:
    logger.error(f"Extraction failed => {e.to_report().model_dump_json()}")
    return get_exit_code(e.source)
  except Exception as e:
    logger.error(f"Unexpected error during extraction: {e}")
    traceback.print_exc()
    return 1

  logger.info(
    f"Complete: {summary.commits} commits ({summary.merges} merges), "
    f"{summary.written} records written, {summary.dropped} dropped"
  )
  return 0


def _run(args: argparse.Namespace, out: TextIO, credentials) -> ExtractSummary:
  return extract(
    args.repo_url,
    out,
    credentials=credentials,
    nested=args.format == "nested",
    clone_root=args.clone_root,
    context_lines=args.context_lines,
  )


if __name__ == "__main__":
  sys.exit(main())
