# =============================================================================
# core/models/supplier.py - Supplier Schemas
# =============================================================================
# These models define the shapes a supplier goes through during bulk import:
# - SupplierRow: One parsed spreadsheet line (all cells as raw text)
# - SupplierCreate: Canonical entity inserted into the suppliers table
#
# SupplierRow keeps the raw text and derives the parsed enums on demand,
# so the validator can report the original value when parsing fails.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field

from lib.utils import normalize_text, split_multi_value


class AvgPrice(str, Enum):
    """Average price tier of a supplier."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ShippingMethod(str, Enum):
    """Shipping methods a supplier offers."""
    CORREIOS = "correios"
    DELIVERY = "delivery"
    TRANSPORTER = "transporter"
    EXCURSION = "excursion"
    AIR = "air"
    CUSTOM = "custom"


class PaymentMethod(str, Enum):
    """Payment methods a supplier accepts."""
    PIX = "pix"
    CARD = "card"
    BANKSLIP = "bankslip"


# Accepted spellings, compared after normalize_text()
AVG_PRICE_ALIASES: dict[str, AvgPrice] = {
    "baixo": AvgPrice.LOW,
    "low": AvgPrice.LOW,
    "1": AvgPrice.LOW,
    "medio": AvgPrice.MEDIUM,
    "medium": AvgPrice.MEDIUM,
    "2": AvgPrice.MEDIUM,
    "alto": AvgPrice.HIGH,
    "high": AvgPrice.HIGH,
    "3": AvgPrice.HIGH,
}

# Substrings that identify each tag inside a normalized token.
# Order matters: tags are emitted in this order.
SHIPPING_KEYWORDS: list[tuple[ShippingMethod, tuple[str, ...]]] = [
    (ShippingMethod.CORREIOS, ("correios",)),
    (ShippingMethod.DELIVERY, ("delivery", "entrega")),
    (ShippingMethod.TRANSPORTER, ("transporter", "transportadora")),
    (ShippingMethod.EXCURSION, ("excursion", "excursao")),
    (ShippingMethod.AIR, ("air", "aereo")),
    (ShippingMethod.CUSTOM, ("custom", "outro")),
]

PAYMENT_KEYWORDS: list[tuple[PaymentMethod, tuple[str, ...]]] = [
    (PaymentMethod.PIX, ("pix",)),
    (PaymentMethod.CARD, ("cartao", "card")),
    (PaymentMethod.BANKSLIP, ("boleto", "bankslip")),
]

TRUTHY_VALUES = {"sim", "yes", "true", "1"}


def parse_avg_price(text: str | None) -> AvgPrice | None:
    """
    Parse a free-text average price.

    Args:
        text: Raw cell value ("médio", "HIGH", "2", ...)

    Returns:
        AvgPrice, or None if the text is blank or not recognized
    """
    return AVG_PRICE_ALIASES.get(normalize_text(text))


def _match_tags(text: str | None, keywords: list[tuple[Enum, tuple[str, ...]]]) -> list:
    tokens = [normalize_text(token) for token in split_multi_value(text)]
    return [
        tag
        for tag, terms in keywords
        if any(term in token for token in tokens for term in terms)
    ]


def parse_shipping_methods(text: str | None) -> list[ShippingMethod]:
    """Parse "correios, transportadora" -> [CORREIOS, TRANSPORTER]."""
    return _match_tags(text, SHIPPING_KEYWORDS)


def parse_payment_methods(text: str | None) -> list[PaymentMethod]:
    """Parse "pix, cartão, boleto" -> [PIX, CARD, BANKSLIP]."""
    return _match_tags(text, PAYMENT_KEYWORDS)


def parse_requires_cnpj(text: str | None) -> bool:
    """Parse "sim"/"yes"/"true"/"1" as True, anything else as False."""
    return normalize_text(text) in TRUTHY_VALUES


class SupplierRow(BaseModel):
    """
    One supplier line parsed from the import spreadsheet.

    Every cell is kept as text; the parsed values are exposed as
    properties. Not persisted as-is - mapped to SupplierCreate on import.

    Example:
        SupplierRow(
            row_number=2,
            code="F001",
            name="Moda Fashion SP",
            description="Atacado de roupas femininas",
            city="São Paulo",
            state="SP",
            avg_price_text="médio",
            category_text="Moda Feminina, Plus Size",
        )
    """

    # Spreadsheet line number (header is row 1, data starts at row 2)
    row_number: int = Field(..., ge=2, description="Spreadsheet row number")

    code: str = Field(default="", description="Supplier business key (codigo)")
    name: str = Field(default="", description="Supplier name (nome)")
    description: str = Field(default="", description="Description (descricao)")
    instagram: str = Field(default="", description="Instagram handle")
    whatsapp: str = Field(default="", description="WhatsApp number")
    website: str = Field(default="", description="Website URL (site)")
    avg_price_text: str = Field(default="", description="Raw average price (preco_medio)")
    min_order: str = Field(default="", description="Minimum order (quantidade_minima)")
    city: str = Field(default="", description="City (cidade)")
    state: str = Field(default="", description="State (estado)")
    shipping_text: str = Field(default="", description="Raw shipping methods (envio)")
    requires_cnpj_text: str = Field(default="", description="Raw CNPJ flag (precisa_cnpj)")
    payment_text: str = Field(default="", description="Raw payment methods (formas_pagamento)")
    category_text: str = Field(default="", description="Raw category names (tipo_fornecedor)")
    image_filenames_hint: str = Field(default="", description="Image names (imagens), informational")

    @property
    def row_key(self) -> str:
        """Business key, or a synthetic per-row key when the code is blank."""
        code = self.code.strip()
        return code if code else f"row-{self.row_number}"

    @property
    def avg_price(self) -> AvgPrice | None:
        return parse_avg_price(self.avg_price_text)

    @property
    def shipping_methods(self) -> list[ShippingMethod]:
        return parse_shipping_methods(self.shipping_text)

    @property
    def payment_methods(self) -> list[PaymentMethod]:
        return parse_payment_methods(self.payment_text)

    @property
    def requires_cnpj(self) -> bool:
        return parse_requires_cnpj(self.requires_cnpj_text)

    @property
    def category_names(self) -> list[str]:
        return split_multi_value(self.category_text)

    @property
    def references_images(self) -> bool:
        return bool(self.image_filenames_hint.strip())


class SupplierCreate(BaseModel):
    """
    Canonical supplier payload written to the suppliers table.

    category_ids are not a column of the suppliers table; they are
    written to the suppliers_categories join table after insert.
    """

    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    instagram: str | None = None
    whatsapp: str | None = None
    website: str | None = None
    min_order: str | None = None
    avg_price: AvgPrice | None = None
    payment_methods: list[PaymentMethod] = Field(default_factory=list)
    shipping_methods: list[ShippingMethod] = Field(default_factory=list)
    requires_cnpj: bool = False
    images: list[str] = Field(default_factory=list)
    featured: bool = False
    hidden: bool = False
    category_ids: list[str] = Field(default_factory=list)

    def to_table_row(self) -> dict:
        """Serialize for insert into the suppliers table (without categories)."""
        return self.model_dump(mode="json", exclude={"category_ids"})


def row_to_supplier_create(
    row: SupplierRow,
    category_ids: list[str],
    images: list[str] | None = None,
) -> SupplierCreate:
    """
    Map a validated spreadsheet row to the canonical entity shape.

    Args:
        row: A row that already passed validation
        category_ids: Resolved category ids, in spreadsheet order
        images: Public image URLs for this supplier code

    Returns:
        SupplierCreate ready for insert
    """
    return SupplierCreate(
        code=row.code.strip(),
        name=row.name.strip(),
        description=row.description.strip(),
        city=row.city.strip(),
        state=row.state.strip(),
        instagram=row.instagram.strip() or None,
        whatsapp=row.whatsapp.strip() or None,
        website=row.website.strip() or None,
        min_order=row.min_order.strip() or None,
        avg_price=row.avg_price,
        payment_methods=row.payment_methods,
        shipping_methods=row.shipping_methods,
        requires_cnpj=row.requires_cnpj,
        images=list(images or []),
        category_ids=category_ids,
    )
