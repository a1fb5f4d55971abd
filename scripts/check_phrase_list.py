#!/usr/bin/env python3
"""Validate forbidden-phrase YAML lists before loading them into the service."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import yaml

from adscreen.services.phrase_catalog import (
    DEFAULT_FORBIDDEN_PHRASES,
    PhraseIssue,
    read_phrase_file,
    validate_phrase_entries,
)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check forbidden-phrase lists for mistakes.")
    parser.add_argument(
        "paths",
        nargs="*",
        help="YAML phrase files to check. Without paths the built-in default list is checked.",
    )
    parser.add_argument(
        "--warn-only",
        action="store_true",
        help="Always exit 0 even when issues are found.",
    )
    return parser.parse_args(argv)


def check_path(path: Path) -> List[PhraseIssue]:
    try:
        entries = read_phrase_file(path)
    except (OSError, yaml.YAMLError) as exc:
        return [PhraseIssue(-1, "", f"cannot read file: {exc}")]
    if not entries:
        return [PhraseIssue(-1, "", "no phrase entries found")]
    return validate_phrase_entries(entries)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    results = []
    if args.paths:
        for raw_path in args.paths:
            results.append((raw_path, check_path(Path(raw_path))))
    else:
        entries = [rule.model_dump(exclude_none=True) for rule in DEFAULT_FORBIDDEN_PHRASES]
        results.append(("<defaults>", validate_phrase_entries(entries)))

    total = sum(len(issues) for _, issues in results)
    if total:
        print(f"[phrase-check] found {total} issue(s):")
        for label, issues in results:
            for issue in issues:
                phrase = issue.phrase.encode("unicode_escape").decode("ascii")
                print(f"{label}:{issue.index}: {issue.reason}: {phrase}")
        if args.warn_only:
            print("[phrase-check] warn-only mode enabled; exiting with code 0.")
            return 0
        return 1

    print("[phrase-check] phrase lists look valid.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
