"""CLI for building and querying embedding stores.

Usage:
  wordemb build --db vectors.db wiki.en.vec
  wordemb get --db vectors.db [--in-memory] king queen
"""

import argparse
import json
import sys
from typing import List, Optional

from wordemb.codec import ByteOrder, VectorCodec
from wordemb.core import open as open_store
from wordemb.core import open_in_memory
from wordemb.utils.exceptions import WordEmbError


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(prog="wordemb", description="Persistent word embedding lookup")
    parser.add_argument(
        "--byte-order",
        choices=[o.value for o in ByteOrder],
        default=None,
        help="Byte order of stored vectors (overrides config)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Bulk-load a text embedding corpus into a new store")
    build.add_argument("corpus", help="Corpus file (.vec / .txt, optionally .gz)")
    build.add_argument("--db", required=True, help="Store file to create")
    build.add_argument(
        "--queue-size", type=int, default=None, help="Parser -> writer queue capacity (0 = no thread)"
    )
    build.add_argument("--batch-size", type=int, default=None, help="Rows per insert batch")

    get = sub.add_parser("get", help="Look up embeddings for one or more words")
    get.add_argument("words", nargs="+", help="Words to look up")
    get.add_argument("--db", required=True, help="Built store file")
    get.add_argument("--in-memory", action="store_true", help="Copy the store into memory first")
    return parser.parse_args(argv)


def _build(args, codec) -> dict:
    with open_store(args.db, codec=codec) as db:
        return db.build_db(args.corpus, queue_size=args.queue_size, batch_size=args.batch_size)


def _get(args, codec) -> dict:
    if args.in_memory:
        db = open_in_memory(args.db, codec=codec)
    else:
        db = open_store(args.db, codec=codec, read_only=True)
    with db:
        result = {}
        for word in args.words:
            vector = db.get(word)
            result[word] = None if vector is None else vector.tolist()
        return result


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    codec = VectorCodec(args.byte_order) if args.byte_order else None
    try:
        output = _build(args, codec) if args.command == "build" else _get(args, codec)
    except WordEmbError as e:
        print(f"wordemb: {e}", file=sys.stderr)
        return 1
    print(json.dumps(output))
    return 0


if __name__ == "__main__":
    sys.exit(main())
