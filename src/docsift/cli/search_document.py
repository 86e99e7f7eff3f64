"""CLI entrypoint for lexical search inside one document."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from docsift.config import EngineSettings
from docsift.ingestion.errors import DocsiftError
from docsift.ingestion.ingestor import DocumentIngestor
from docsift.search.query import search_document


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Search a document's chunks by token overlap")
    parser.add_argument("--path", required=True, help="Source document path")
    parser.add_argument("--query", required=True, help="Free-text query")
    parser.add_argument("--k", type=int, default=None, help="Maximum number of results (1-32)")
    parser.add_argument("--format", default=None, help="Format tag (pdf, docx, xlsx, csv); detected when omitted")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(message)s")

    source_path = Path(args.path)
    try:
        settings = EngineSettings.from_env()
        k = args.k if args.k is not None else settings.default_top_k
        raw = source_path.read_bytes()
        ingestor = DocumentIngestor.from_settings(settings)
        format_name = args.format or ingestor.detect_format(raw, filename=source_path.name)
        document = ingestor.load(raw, format_name, file_name=source_path.name)
        hits = search_document(document, args.query, k)
    except (OSError, ValueError, DocsiftError) as exc:
        print(json.dumps({"query": args.query, "error": str(exc)}, ensure_ascii=True, indent=2))
        return 1

    payload = {
        "query": args.query,
        "k": k,
        "results": [hit.to_dict() for hit in hits],
    }
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
