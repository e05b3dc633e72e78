from __future__ import annotations

import argparse
from datetime import datetime, timezone
import json
import os
import sys
from typing import Any

import yaml

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pbi_chat.core.config import get_settings
from pbi_chat.schema.loader import document_to_payload, parse_schema_payload


def build_payload(model_bim: dict[str, Any]) -> dict[str, Any]:
    """Normalize a Model.bim payload into the schema artifact layout."""
    document = parse_schema_payload(model_bim, source="Model.bim")
    payload = document_to_payload(document)
    model = model_bim.get("model") if isinstance(model_bim.get("model"), dict) else {}
    payload["metadata"]["parsedAt"] = datetime.now(timezone.utc).isoformat()
    payload["metadata"]["version"] = str(model.get("version") or model_bim.get("compatibilityLevel") or "unknown")
    return payload


def parse_model(input_path: str, output_path: str) -> dict[str, Any]:
    with open(input_path, "r", encoding="utf-8-sig") as handle:
        model_bim = json.load(handle)

    payload = build_payload(model_bim)

    resolved = os.path.abspath(output_path)
    os.makedirs(os.path.dirname(resolved), exist_ok=True)
    with open(resolved, "w", encoding="utf-8") as handle:
        if resolved.lower().endswith((".yaml", ".yml")):
            yaml.safe_dump(payload, handle, sort_keys=False, allow_unicode=True)
        else:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
    return payload


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Extract the schema artifact from a Power BI Model.bim")
    parser.add_argument("--input", default="Model.bim", help="Path to Model.bim")
    parser.add_argument(
        "--output",
        default=settings.schema_path,
        help="Path to write schema-parsed.json (or .yaml)",
    )
    args = parser.parse_args()

    payload = parse_model(args.input, args.output)
    stats = payload["metadata"]["statistics"]
    print(f"Wrote schema to {os.path.abspath(args.output)}")
    print(f"  Tables:        {stats['tables']}")
    print(f"  Total Columns: {stats['totalColumns']}")
    print(f"  Measures:      {stats['measures']}")
    print(f"  Relationships: {stats['relationships']}")


if __name__ == "__main__":
    main()
