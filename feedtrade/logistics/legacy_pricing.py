"""
Legacy price recovery from transaction descriptions.

Technical debt: deliveries booked through the quick-shipment flow for suppliers
that have no purchase documents carry their price only inside the free-text
description of the supplier's account transaction, e.g.

    "Purchase - 12.500 kg × 3,50 ₺/kg"

The number uses Turkish formatting (dot thousands, comma decimal). Anything that
edits these descriptions by hand can break recovery. Keep all parsing of
description text in this module; the reconciler only calls
``recover_unit_price``.
"""
import decimal
from decimal import Decimal
import logging
import re

logger = logging.getLogger(__name__)

PRICE_PATTERN = re.compile(r'[×x]\s*([0-9][0-9.,]*)\s*₺\s*/\s*kg', re.IGNORECASE)


def parse_tr_number(text):
    """'12.500,75' -> Decimal('12500.75'); None when unparsable"""
    if not text:
        return None
    normalized = text.strip().replace('.', '').replace(',', '.')
    try:
        return Decimal(normalized)
    except decimal.InvalidOperation:
        return None


def format_tr_number(value, places=2, trim=False):
    """Decimal('12500.5') -> '12.500,50' ('12.500,5' with trim)"""
    value = Decimal(value).quantize(Decimal(1).scaleb(-places))
    integer, _, fraction = f"{value:,.{places}f}".partition('.')
    integer = integer.replace(',', '.')
    if trim:
        fraction = fraction.rstrip('0')
    return f"{integer},{fraction}" if fraction else integer


def format_kg(value):
    return format_tr_number(value, places=2, trim=True)


def format_price(value):
    return format_tr_number(value, places=2)


def recover_unit_price(description):
    """Unit price written as '× <number> ₺/kg' in a description, or None"""
    if not description:
        return None
    match = PRICE_PATTERN.search(description)
    if match is None:
        return None
    price = parse_tr_number(match.group(1))
    if price is None or price <= 0:
        logger.debug(f"Unparsable legacy price in description: {description!r}")
        return None
    return price
