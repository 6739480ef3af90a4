"""
Currency converter: fixed-rate conversion between USD and KHR.

Rates come from LedgerConfig; the converter holds no other
state. Amounts are Decimal end to end, never float.

Scale rules:
    USD  2 decimal places
    KHR  whole riel, no fractional minor units
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from retail_ledger.config import LedgerConfig
from retail_ledger.errors import ConfigurationError, ValidationError
from retail_ledger.models.enums import Currency


CURRENCY_SCALE = {
    Currency.USD: Decimal("0.01"),
    Currency.KHR: Decimal("1"),
}

CURRENCY_SYMBOL = {
    Currency.USD: "$",
    Currency.KHR: "៛",
}


def parse_currency(value: str) -> Currency:
    """Accept 'usd', 'USD', Currency.USD; reject anything else."""
    try:
        return Currency(str(getattr(value, "value", value)).upper())
    except ValueError:
        raise ValidationError(
            f"Invalid currency '{value}'. Only USD and KHR are supported."
        )


def format_amount(amount: Decimal, currency: str) -> str:
    """'$1,234.50' for USD, '៛20,000' for KHR."""
    currency = Currency(currency)
    symbol = CURRENCY_SYMBOL[currency]
    if currency == Currency.USD:
        return f"{symbol}{amount:,.2f}"
    return f"{symbol}{amount:,.0f}"


class CurrencyConverter:

    def __init__(self, config: LedgerConfig):
        self._rates = {
            (Currency.USD, Currency.KHR): config.usd_to_khr_rate,
            (Currency.KHR, Currency.USD): config.khr_to_usd_rate,
        }

    def rate(self, from_currency: str, to_currency: str) -> Decimal:
        from_currency, to_currency = Currency(from_currency), Currency(to_currency)
        if from_currency == to_currency:
            return Decimal("1")
        try:
            return self._rates[(from_currency, to_currency)]
        except KeyError:
            raise ConfigurationError(
                f"Unsupported currency conversion: "
                f"{from_currency.value} to {to_currency.value}"
            )

    def convert(
        self, amount: Decimal, from_currency: str, to_currency: str
    ) -> Decimal:
        """
        Convert an amount between the two supported currencies.

        Same currency is the identity. USD->KHR rounds to whole
        riel, KHR->USD to cents, both half-up.
        """
        if Currency(from_currency) == Currency(to_currency):
            return amount
        converted = amount * self.rate(from_currency, to_currency)
        return self.quantize(converted, to_currency)

    def rate_display(self, from_currency: str, to_currency: str) -> str:
        """Human-readable rate for confirmations and remarks."""
        if Currency(from_currency) == Currency(to_currency):
            return "1:1 (Same currency)"
        rate = self.rate(from_currency, to_currency)
        return (
            f"1 {Currency(from_currency).value} = "
            f"{rate.normalize():f} {Currency(to_currency).value}"
        )

    @staticmethod
    def quantize(amount: Decimal, currency: str) -> Decimal:
        return amount.quantize(
            CURRENCY_SCALE[Currency(currency)], rounding=ROUND_HALF_UP
        )

    @staticmethod
    def validate_amount(amount, currency: str) -> Decimal:
        """
        Return the amount as a Decimal at the currency's scale.

        Rejects non-numbers, non-positive values, fractional riel
        and USD with more than two decimal places. Nothing is
        silently rounded.
        """
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid amount '{amount}'")

        if not value.is_finite() or value <= 0:
            raise ValidationError("Amount must be greater than zero")

        currency = Currency(currency)
        scale = CURRENCY_SCALE[currency]
        scaled = value.quantize(scale, rounding=ROUND_HALF_UP)
        if scaled != value:
            if currency == Currency.KHR:
                raise ValidationError("KHR amounts must be whole numbers")
            raise ValidationError(
                "USD amounts cannot have more than 2 decimal places"
            )
        return scaled
