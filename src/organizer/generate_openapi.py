"""
Export the Organizer API's OpenAPI document to disk.

Run from the repository root:
    python -m src.organizer.generate_openapi [output-path]

Without an argument the document lands in interfaces/openapi.json, next to src/.
"""
from __future__ import annotations

import json
import os
import sys
from typing import Optional

from .main import app


def _default_path() -> str:
    package_dir = os.path.dirname(os.path.abspath(__file__))
    repo_root = os.path.dirname(os.path.dirname(package_dir))
    return os.path.join(repo_root, "interfaces", "openapi.json")


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Write the app's OpenAPI document and return the path it was written to."""
    document = app.openapi()
    target = out_path or _default_path()
    os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
    with open(target, "w", encoding="utf-8") as fh:
        json.dump(document, fh, indent=2, ensure_ascii=False)
    return target


if __name__ == "__main__":
    written = generate_openapi(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"OpenAPI document written to {written}")
