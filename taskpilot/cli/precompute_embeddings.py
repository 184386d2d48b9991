# =============================================
# File: taskpilot/cli/precompute_embeddings.py
# Purpose: CLI entrypoint to embed the resource catalog ahead of time.
# Usage:
#   AI_API_KEY=id.secret python -m taskpilot.cli.precompute_embeddings --data-dir taskpilot/data
# =============================================
from __future__ import annotations
import argparse
import sys

from taskpilot.config import Settings
from taskpilot.services.embedding import SemanticGateway
from taskpilot.services.indexer import DEFAULT_BATCH_DELAY_S, DEFAULT_BATCH_SIZE, refresh_embeddings
from taskpilot.utils.errors import ConfigError


def main(argv=None):
    settings = Settings.from_env()
    ap = argparse.ArgumentParser(description="Precompute embeddings for resources.json.")
    ap.add_argument("--data-dir", default=str(settings.data_dir), help="Folder holding resources.json")
    ap.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Texts per request (default: 10)")
    ap.add_argument("--delay", type=float, default=DEFAULT_BATCH_DELAY_S, help="Seconds between batches (default: 1.0)")
    args = ap.parse_args(argv)

    try:
        gateway = SemanticGateway(
            settings.api_key,
            settings.embedding_url,
            model=settings.embedding_model,
            timeout_s=settings.embed_timeout_s,
        )
    except ConfigError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(2)

    try:
        done, total, out = refresh_embeddings(gateway, args.data_dir, batch_size=args.batch_size, batch_delay_s=args.delay)
    except FileNotFoundError as e:
        print(f"[ERROR] {e}. Check --data-dir.", file=sys.stderr)
        sys.exit(1)

    if done == 0:
        print("[WARN] No embeddings were produced.", file=sys.stderr)
        sys.exit(1)

    print(f"[OK] Embedded {done}/{total} resources. Output: {out}")


if __name__ == "__main__":
    main()
