from __future__ import annotations

import argparse
import json
from pathlib import Path

from gridpdf.errors import StructureParseError
from gridpdf.pipeline.render_pdf import generate_pdf_from_structure
from gridpdf.pipeline.structure import GenerationOptions, load_document


def main() -> None:
    parser = argparse.ArgumentParser(description="Render a pdfDocument JSON file straight to PDF")
    parser.add_argument("--in", dest="in_json", type=str, required=True, help="Document structure JSON")
    parser.add_argument("--out", dest="out_pdf", type=str, default="output/structure.pdf", help="Output PDF")
    parser.add_argument("--page-size", dest="page_size", type=str, default="A4", choices=["A4", "letter", "legal"])
    args = parser.parse_args()

    in_path = Path(args.in_json)
    try:
        structure = load_document(in_path.read_text(encoding="utf-8"))
    except StructureParseError as exc:
        raise SystemExit(f"Invalid document structure in {in_path}: {exc}")

    result = generate_pdf_from_structure(structure, args.out_pdf, GenerationOptions(page_size=args.page_size))
    print(json.dumps(result.to_dict(), indent=2))
    if not result.success:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
