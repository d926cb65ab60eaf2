# =============================================================================
# lib/spreadsheet.py - Supplier Spreadsheet Reader
# =============================================================================
# Turns an uploaded .xlsx/.xls/.csv file into SupplierRow objects.
#
# Expected header (row 1), in this order:
#   codigo, nome, descricao, instagram, whatsapp, site, preco_medio,
#   quantidade_minima, cidade, estado, envio, precisa_cnpj,
#   formas_pagamento, tipo_fornecedor, imagens
#
# Headers are matched after normalization ("Preço Médio" -> "preco_medio").
# Any structural problem raises SpreadsheetReadError; nothing is returned
# partially.
#
# Usage:
#   rows = read_supplier_spreadsheet(content, "fornecedores.xlsx")
# =============================================================================

from __future__ import annotations

import io
import logging
import re

import pandas as pd

from core.models.supplier import SupplierRow
from lib.utils import ApplicationError, strip_accents

logger = logging.getLogger(__name__)

SPREADSHEET_COLUMNS: list[str] = [
    "codigo",
    "nome",
    "descricao",
    "instagram",
    "whatsapp",
    "site",
    "preco_medio",
    "quantidade_minima",
    "cidade",
    "estado",
    "envio",
    "precisa_cnpj",
    "formas_pagamento",
    "tipo_fornecedor",
    "imagens",
]

# Spreadsheet column -> SupplierRow field
COLUMN_TO_FIELD: dict[str, str] = {
    "codigo": "code",
    "nome": "name",
    "descricao": "description",
    "instagram": "instagram",
    "whatsapp": "whatsapp",
    "site": "website",
    "preco_medio": "avg_price_text",
    "quantidade_minima": "min_order",
    "cidade": "city",
    "estado": "state",
    "envio": "shipping_text",
    "precisa_cnpj": "requires_cnpj_text",
    "formas_pagamento": "payment_text",
    "tipo_fornecedor": "category_text",
    "imagens": "image_filenames_hint",
}

ENCODINGS_TO_TRY = ["utf-8-sig", "latin-1"]

TEMPLATE_EXAMPLE_ROWS: list[list[str]] = [
    [
        "F001", "Moda Fashion SP", "Atacado de roupas femininas com foco em tendências atuais",
        "@modafashionsp", "11999999999", "https://modafashionsp.com.br", "médio",
        "10 peças", "São Paulo", "SP", "correios,transportadora", "sim",
        "pix,cartão,boleto", "Moda Feminina", "F001-img1.jpg,F001-img2.jpg",
    ],
    [
        "F002", "Plus Size Goiânia", "Especializada em moda plus size feminina",
        "@plussizegoiania", "62999999999", "https://plussizegoiania.com.br", "baixo",
        "5 peças", "Goiânia", "GO", "correios,entrega", "não",
        "pix,boleto", "Plus Size,Moda Feminina", "F002-img1.jpg",
    ],
]


class SpreadsheetReadError(ApplicationError):
    """Raised when the spreadsheet cannot be parsed or has the wrong layout."""

    def __init__(self, message: str, suggestion: str | None = None, details: dict | None = None):
        super().__init__(
            message,
            code="SPREADSHEET_READ_ERROR",
            suggestion=suggestion or "Download the template and keep its header row unchanged",
            details=details,
        )


def normalize_header(header: object) -> str:
    """Normalize a header cell: "Preço Médio" -> "preco_medio"."""
    text = strip_accents(str(header).strip().lower())
    return re.sub(r"\s+", "_", text)


def _cell_to_text(value: object) -> str:
    """Convert a cell to text; NaN -> "", 11999999999.0 -> "11999999999"."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if pd.isna(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _read_frame(content: bytes, filename: str) -> pd.DataFrame:
    """Load the raw file into a DataFrame of strings (no header handling)."""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""

    if extension in ("xlsx", "xls"):
        engine = "openpyxl" if extension == "xlsx" else None
        try:
            return pd.read_excel(
                io.BytesIO(content),
                sheet_name=0,
                header=None,
                dtype=object,
                engine=engine,
            )
        except Exception as e:
            raise SpreadsheetReadError(
                f"Failed to read spreadsheet '{filename}': {e}",
                details={"filename": filename},
            ) from e

    if extension == "csv":
        last_error: Exception | None = None
        for encoding in ENCODINGS_TO_TRY:
            try:
                return pd.read_csv(
                    io.BytesIO(content),
                    header=None,
                    dtype=str,
                    keep_default_na=False,
                    encoding=encoding,
                    sep=None,
                    engine="python",
                )
            except UnicodeDecodeError as e:
                last_error = e
                continue
            except pd.errors.EmptyDataError:
                return pd.DataFrame()
            except Exception as e:
                raise SpreadsheetReadError(
                    f"Failed to read CSV '{filename}': {e}",
                    details={"filename": filename},
                ) from e
        raise SpreadsheetReadError(
            f"Could not decode CSV '{filename}': {last_error}",
            suggestion="Save the file as UTF-8 CSV",
            details={"filename": filename},
        )

    raise SpreadsheetReadError(
        f"Unsupported spreadsheet type: '{filename}'",
        suggestion="Upload an .xlsx, .xls or .csv file",
        details={"filename": filename},
    )


def read_supplier_spreadsheet(content: bytes, filename: str) -> list[SupplierRow]:
    """
    Parse an uploaded supplier spreadsheet.

    Args:
        content: Raw file bytes
        filename: Original filename (used to pick the reader)

    Returns:
        One SupplierRow per non-blank data row, in sheet order

    Raises:
        SpreadsheetReadError: If the file is unreadable, empty, or the
            header row does not contain every expected column
    """
    frame = _read_frame(content, filename)

    if frame.empty:
        raise SpreadsheetReadError(
            f"Spreadsheet '{filename}' is empty",
            details={"filename": filename},
        )

    headers = [normalize_header(value) if _cell_to_text(value) else "" for value in frame.iloc[0]]
    missing = [column for column in SPREADSHEET_COLUMNS if column not in headers]
    if missing:
        raise SpreadsheetReadError(
            f"Spreadsheet is missing columns: {', '.join(missing)}",
            details={"filename": filename, "missing_columns": missing, "found_columns": headers},
        )

    # First occurrence wins if a header is repeated
    positions = {column: headers.index(column) for column in SPREADSHEET_COLUMNS}

    rows: list[SupplierRow] = []
    for offset, values in enumerate(frame.iloc[1:].itertuples(index=False, name=None)):
        cells = {
            COLUMN_TO_FIELD[column]: _cell_to_text(values[position])
            for column, position in positions.items()
        }
        if not any(cells.values()):
            continue
        rows.append(SupplierRow(row_number=offset + 2, **cells))

    logger.info(f"Parsed {len(rows)} supplier rows from {filename}")
    return rows


def build_template() -> bytes:
    """
    Build the downloadable .xlsx import template.

    Returns:
        Workbook bytes with the header row and two example suppliers
    """
    frame = pd.DataFrame(TEMPLATE_EXAMPLE_ROWS, columns=SPREADSHEET_COLUMNS)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name="Fornecedores")
    return buffer.getvalue()
