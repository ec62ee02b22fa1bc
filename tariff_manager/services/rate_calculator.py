"""
Service de calcul des tarifs / Rate calculation service.
Formule d'indexation diesel et composition du tarif courant.
Diesel indexation formula and current-rate composition.

    proposed = base × (1 + Δdiesel/100 × impact/100)

Toutes les opérations sont pures : les paramètres de contrôle sont passés en argument.
All operations are pure: control settings are passed in as arguments.
"""

from decimal import ROUND_HALF_UP, Decimal

from tariff_manager.exceptions import ValidationError

# TVA sud-africaine / South African VAT
VAT_RATE = Decimal("0.15")

DEFAULT_DIESEL_IMPACT = Decimal("35")
HUNDRED = Decimal("100")

_CURRENCY_SYMBOLS = {"ZAR": "R", "USD": "$"}


def to_decimal(value) -> Decimal:
    """Convertir float/int/str en Decimal exact / Convert float/int/str to an exact Decimal."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value, decimals: int = 2) -> Decimal:
    """Arrondi commercial / Half-up rounding to `decimals` places."""
    return to_decimal(value).quantize(Decimal(1).scaleb(-int(decimals)), rounding=ROUND_HALF_UP)


def format_currency(amount, currency: str = "ZAR") -> str:
    """Formater un montant : 'R 1,234.50' / Format an amount as 'R 1,234.50'."""
    symbol = _CURRENCY_SYMBOLS.get(str(currency), str(currency))
    return f"{symbol} {round_half_up(amount, 2):,.2f}"


class RateCalculator:
    """Formule de tarif et compositeur / Rate formula and composer."""

    @staticmethod
    def proposed_rate(
        base_rate,
        diesel_change_percent,
        diesel_impact_percent=DEFAULT_DIESEL_IMPACT,
        decimals: int = 2,
    ) -> Decimal:
        """
        Tarif proposé après variation du diesel / Proposed rate after a diesel move.
        Ex: 4500 à +10.4651% avec impact 35% -> 4664.83.
        """
        base = to_decimal(base_rate)
        change = to_decimal(diesel_change_percent)
        impact = to_decimal(diesel_impact_percent)
        factor = 1 + (change / HUNDRED) * (impact / HUNDRED)
        return round_half_up(base * factor, decimals)

    @staticmethod
    def diesel_change_from_base(current_price, base_price) -> Decimal:
        """Variation (%) du prix courant vs prix de référence / Change (%) of current vs base price."""
        base = to_decimal(base_price)
        if base == 0:
            raise ValidationError("Base diesel price must be non-zero", details={"base_price": str(base_price)})
        return (to_decimal(current_price) - base) / base * HUNDRED

    @staticmethod
    def percentage_change(old, new) -> Decimal:
        """Variation relative en % (0 si ancien = 0) / Relative change in % (0 when old is 0)."""
        old = to_decimal(old)
        if old == 0:
            return Decimal("0")
        return (to_decimal(new) - old) / old * HUNDRED

    @staticmethod
    def scale_rate(rate, percentage, decimals: int = 2) -> Decimal:
        """Appliquer un pourcentage uniforme / Apply a flat percentage to a rate."""
        return round_half_up(to_decimal(rate) * (1 + to_decimal(percentage) / HUNDRED), decimals)

    @staticmethod
    def compose_current_rate(base_rate, additional_charges=0, includes_vat: bool = False) -> Decimal:
        """
        Composer le tarif facturé / Compose the billed rate.
        (base + frais additionnels) × 1.15 si TVA incluse.
        (base + additional charges) × 1.15 when VAT-inclusive.
        """
        subtotal = to_decimal(base_rate) + to_decimal(additional_charges or 0)
        if includes_vat:
            subtotal = subtotal * (1 + VAT_RATE)
        return round_half_up(subtotal, 2)
