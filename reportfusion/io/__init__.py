"""ReportFusion I/O package.

File read/write and JSON mapping only; no clustering logic in this layer.
"""

from reportfusion.io.persistence import load_json, save_json

__all__ = [
    "save_json",
    "load_json",
]
