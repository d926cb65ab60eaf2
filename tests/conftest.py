# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides supplier rows, categories, spreadsheets and archives built
#   in memory
# =============================================================================

import io
import os
import zipfile

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pandas as pd
import pytest

from core.models.supplier import SupplierRow
from lib.categories import CategoryIndex
from lib.spreadsheet import SPREADSHEET_COLUMNS


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def sample_categories():
    """Category rows as returned by the categories table."""
    return [
        {"id": "cat-fem", "name": "Moda Feminina"},
        {"id": "cat-plus", "name": "Plus Size"},
        {"id": "cat-calc", "name": "Calçados"},
    ]


@pytest.fixture
def category_index(sample_categories):
    """CategoryIndex built from sample_categories."""
    return CategoryIndex.from_categories(sample_categories)


@pytest.fixture
def make_row():
    """Factory for valid SupplierRow objects; override any field by keyword."""
    def _make(row_number: int = 2, **overrides) -> SupplierRow:
        data = {
            "code": "F001",
            "name": "Moda Fashion SP",
            "description": "Atacado de roupas femininas",
            "instagram": "@modafashionsp",
            "whatsapp": "11999999999",
            "website": "",
            "avg_price_text": "médio",
            "min_order": "10 peças",
            "city": "São Paulo",
            "state": "SP",
            "shipping_text": "correios, transportadora",
            "requires_cnpj_text": "sim",
            "payment_text": "pix, cartão",
            "category_text": "Moda Feminina",
            "image_filenames_hint": "",
        }
        data.update(overrides)
        return SupplierRow(row_number=row_number, **data)

    return _make


@pytest.fixture
def spreadsheet_records():
    """Two valid spreadsheet lines keyed by template column."""
    return [
        {
            "codigo": "F001",
            "nome": "Moda Fashion SP",
            "descricao": "Atacado de roupas femininas",
            "instagram": "@modafashionsp",
            "whatsapp": "11999999999",
            "site": "",
            "preco_medio": "médio",
            "quantidade_minima": "10 peças",
            "cidade": "São Paulo",
            "estado": "SP",
            "envio": "correios",
            "precisa_cnpj": "sim",
            "formas_pagamento": "pix",
            "tipo_fornecedor": "Moda Feminina",
            "imagens": "F001-1.jpg",
        },
        {
            "codigo": "F002",
            "nome": "Plus Size Goiânia",
            "descricao": "Moda plus size",
            "instagram": "",
            "whatsapp": "",
            "site": "",
            "preco_medio": "baixo",
            "quantidade_minima": "",
            "cidade": "Goiânia",
            "estado": "GO",
            "envio": "entrega",
            "precisa_cnpj": "não",
            "formas_pagamento": "boleto",
            "tipo_fornecedor": "Plus Size, Moda Feminina",
            "imagens": "",
        },
    ]


@pytest.fixture
def make_xlsx():
    """Build .xlsx bytes from a list of records (template columns by default)."""
    def _make(records: list[dict], columns: list[str] | None = None) -> bytes:
        frame = pd.DataFrame(records, columns=columns or SPREADSHEET_COLUMNS)
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            frame.to_excel(writer, index=False)
        return buffer.getvalue()

    return _make


@pytest.fixture
def make_zip():
    """Build ZIP bytes from {entry_name: content}."""
    def _make(entries: dict[str, bytes]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            for name, content in entries.items():
                zf.writestr(name, content)
        return buffer.getvalue()

    return _make
