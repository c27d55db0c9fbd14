#!/usr/bin/env python3
"""
Offline resolution against decompiled sources
---------------------------------------------
Indexes jadx-style Java output of the target app and runs every fingerprint
strategy against it, without hooking anything. Shows which strategy would win
on this build and which getters it picks.

USAGE EXAMPLES
--------------
# 1) Run against the bundled obfuscated sample:
hookfinder-resolve

# 2) Run against a decompiled source tree, with a JSON report:
hookfinder-resolve /path/to/jadx/sources --json
"""

import argparse

from hookfinder.src.hookfinder.config import get_settings
from hookfinder.src.hookfinder.indexer import JavaIndexer
from hookfinder.src.hookfinder.inputs.directory_scanning import index_directory
from hookfinder.src.hookfinder.java_query_service import JavaIndexQueryService
from hookfinder.src.hookfinder.log import configure_logging
from hookfinder.src.hookfinder.models.resolution import ResolutionResult
from hookfinder.src.hookfinder.outputs.output import print_summary, to_json
from hookfinder.src.hookfinder.targets import follow_status_matcher, identifier_lookup, story_matcher

# --- Demo main ---------------------------------------------------------------

SAMPLE_JAVA = r"""
package com.instagram.user.model;

import com.instagram.common.session.UserSession;

public interface FriendshipStatus {
    Boolean A00();
    Boolean A01();
    Boolean A02();
    String A03();
}

final class C4Q {
    public static boolean A00(UserSession userSession, User user) {
        if (user.A0L()) {
            return user.A0M();
        }
        return false;
    }
}

class User {
    public final String A0B;

    public User(String id) {
        if (id == null) {
            throw new IllegalStateException("ERROR_INSERT_EXPIRED_URL");
        }
        this.A0B = id;
    }

    public boolean A0L() { return A0B != null; }
    public boolean A0M() { return false; }
}
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hookfinder-resolve", description=__doc__.split("\n")[1])
    parser.add_argument("sources", nargs="?", help="directory of decompiled .java files")
    parser.add_argument("--json", action="store_true", help="also print the JSON report")
    parser.add_argument("--probe", action="store_true", help="probe every getter when no story signal matches")
    parser.add_argument("--log-level", default=None, help="overrides HOOKFINDER_LOG_LEVEL")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    # Create indexer (loads the Tree-sitter Java grammar once)
    indexer = JavaIndexer()

    # If a directory is given, index .java files in it; else use SAMPLE_JAVA
    if args.sources:
        index_directory(indexer, args.sources)
    else:
        indexer.index_source(SAMPLE_JAVA, "<sample>")

    query = JavaIndexQueryService(indexer)
    resolution = follow_status_matcher().resolve(query)
    identifier_type = None
    if isinstance(resolution, ResolutionResult):
        identifier_type = identifier_lookup().lookup(query, resolution.owning_type)
    signals = story_matcher(args.probe or settings.story_probe_fallback).match(query)

    print_summary(indexer, resolution, identifier_type, signals)

    if args.json:
        print("\n=== JSON ===")
        print(to_json(resolution, identifier_type, signals))
    return 0 if isinstance(resolution, ResolutionResult) else 1


if __name__ == "__main__":
    raise SystemExit(main())
