"""Generate JSON schemas for the receipt and manifest wire formats.

Run from an installed (or editable) checkout; schemas land in schemas/.
"""

import json
from pathlib import Path

from plasm.kernel.manifest import Manifest
from plasm.kernel.receipt import Receipt


SCHEMAS = {
    "receipt.schema.json": Receipt,
    "manifest.schema.json": Manifest,
}


def generate_schemas(schemas_dir: Path = None):
    """Write one schema file per wire model."""
    if schemas_dir is None:
        schemas_dir = Path(__file__).parent.parent / "schemas"
    schemas_dir.mkdir(exist_ok=True)

    for filename, model in SCHEMAS.items():
        schema_path = schemas_dir / filename
        with open(schema_path, "w", encoding="utf-8") as f:
            json.dump(model.model_json_schema(), f, indent=2, ensure_ascii=False)
            f.write("\n")
        print(f"Generated: {schema_path}")

    print("\nSchema generation complete!")


if __name__ == "__main__":
    generate_schemas()
