# =============================================================================
# lib/csv_export.py - Import Error Export
# =============================================================================
# Renders an error set as the downloadable CSV shown after an import:
#
#   Código,Erro
#   F001,code 'F001' already exists.
#   F002,"category 'Praia, Verão' not found."
#
# Quoting follows standard CSV rules (fields with commas, quotes or
# newlines are double-quoted; embedded quotes are doubled).
# =============================================================================

import pandas as pd

from core.models.imports import ValidationErrorSet

CSV_HEADER = ["Código", "Erro"]


def errors_to_csv(errors: ValidationErrorSet) -> str:
    """
    Convert an error set to CSV text.

    Args:
        errors: Row key -> messages

    Returns:
        CSV text with a header and one line per (key, message) pair.
        An empty error set produces just the header.
    """
    records = [
        (key, message)
        for key, messages in errors.items()
        for message in messages
    ]
    frame = pd.DataFrame(records, columns=CSV_HEADER)
    return frame.to_csv(index=False, lineterminator="\n")
