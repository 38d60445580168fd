#!/usr/bin/env python3
"""
Command-line entry point: check the links of HTML files and directories.

    html-link-validator site/ --enforce-https --check-sri
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .checker import LinksChecker
from .config_logging import LinkCheckError, get_config, get_logger
from .external_resolver import ExternalResolver
from .models import ExclusionRule, LinkCheckOptions
from .report import EXIT_ERROR, LinkReport

logger = get_logger(__name__)

HTML_SUFFIXES = ('.html', '.htm')


def collect_files(paths: List[str]) -> List[str]:
    """Expand directories into their HTML files, keeping the given order."""
    files = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(str(p) for p in sorted(path.rglob('*'))
                         if p.is_file() and p.suffix.lower() in HTML_SUFFIXES)
        else:
            files.append(str(path))
    return files


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='html-link-validator',
        description='Validate links, resource references and media sources in HTML files'
    )
    parser.add_argument('paths', nargs='+', help='HTML files or directories to check')
    parser.add_argument('--allow-missing-href', action='store_true',
                        help='Tolerate anchors without an href attribute')
    parser.add_argument('--allow-hash-href', action='store_true',
                        help='Tolerate href="#"')
    parser.add_argument('--ignore-empty-mailto', action='store_true',
                        help='Tolerate mailto: links without an address')
    parser.add_argument('--enforce-https', action='store_true',
                        help='Report plain http:// links')
    parser.add_argument('--check-sri', action='store_true',
                        help='Require integrity and crossorigin on external stylesheets')
    parser.add_argument('--disable-external', action='store_true',
                        help='Do not resolve external links')
    parser.add_argument('--ignore-url', action='append', default=[], metavar='PATTERN',
                        help='Skip a URL (exact match, or /regex/); repeatable')
    parser.add_argument('--internal-domain', action='append', default=[], metavar='HOST',
                        help='Treat absolute URLs on HOST as internal; repeatable')
    parser.add_argument('--root-dir', type=str, default=None,
                        help='Directory that root-relative links resolve against')
    parser.add_argument('--assume-extension', type=str, default='.html',
                        help='Extension tried for extensionless internal links')
    parser.add_argument('--format', choices=['text', 'json'], default='text',
                        help='Report format')
    parser.add_argument('--workers', type=int, default=1,
                        help='Documents checked in parallel')
    return parser


def options_from_args(args: argparse.Namespace) -> LinkCheckOptions:
    return LinkCheckOptions(
        allow_missing_href=args.allow_missing_href,
        allow_hash_href=args.allow_hash_href,
        ignore_empty_mailto=args.ignore_empty_mailto,
        enforce_https=args.enforce_https,
        check_sri=args.check_sri,
        ignore_urls=[ExclusionRule.parse(p) for p in args.ignore_url],
        internal_domains=tuple(args.internal_domain),
        root_dir=args.root_dir,
        assume_extension=args.assume_extension,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    checker = LinksChecker(options_from_args(args))

    try:
        files = collect_files(args.paths)
        results = checker.check_paths(files, workers=args.workers)
    except LinkCheckError as e:
        logger.error(e.message)
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    outcomes = None
    if not args.disable_external:
        checks = [check for result in results for check in result.external_checks]
        with ExternalResolver(get_config()) as resolver:
            outcomes = resolver.resolve_all(checks)

    report = LinkReport(results, outcomes)
    if args.format == 'json':
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(report.render_text())
    return report.exit_code()


if __name__ == '__main__':
    sys.exit(main())
