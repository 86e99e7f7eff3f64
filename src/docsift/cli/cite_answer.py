"""CLI entrypoint for locating supporting clauses for an answer."""

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
from docsift.search.citation import attach_citations, locate_citation


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Find the clause and page that best support an answer")
    parser.add_argument("--path", required=True, help="Source document path")
    parser.add_argument("--answer", required=True, help="Answer text; each line is cited separately")
    parser.add_argument("--format", default=None, help="Format tag (pdf, docx, xlsx, csv); detected when omitted")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(message)s")

    source_path = Path(args.path)
    try:
        raw = source_path.read_bytes()
        ingestor = DocumentIngestor.from_settings(EngineSettings.from_env())
        format_name = args.format or ingestor.detect_format(raw, filename=source_path.name)
        document = ingestor.load(raw, format_name, file_name=source_path.name)
    except (OSError, ValueError, DocsiftError) as exc:
        print(json.dumps({"answer": args.answer, "error": str(exc)}, ensure_ascii=True, indent=2))
        return 1

    payload = {
        "answer": args.answer,
        "citation": locate_citation(document, args.answer).to_dict(),
        "annotated": attach_citations(args.answer, document),
    }
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
