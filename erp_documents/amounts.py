"""Money formatting and French amounts in words ("Arrêté à la somme de")."""

from decimal import ROUND_HALF_UP, Decimal

from .models import parse_decimal

MILLIME = Decimal("0.001")

UNITS = ['', 'un', 'deux', 'trois', 'quatre', 'cinq', 'six', 'sept', 'huit', 'neuf', 'dix',
         'onze', 'douze', 'treize', 'quatorze', 'quinze', 'seize', 'dix-sept', 'dix-huit', 'dix-neuf']
TENS = ['', '', 'vingt', 'trente', 'quarante', 'cinquante', 'soixante', 'soixante',
        'quatre-vingt', 'quatre-vingt']

CURRENCY_SYMBOLS = {"TND": "DT"}
CURRENCY_NAMES = {"TND": "Dinars tunisiens"}


def to_millimes(value) -> Decimal:
    """Quantize to 3 decimals, half-up. Unreadable input counts as zero."""
    amount = parse_decimal(value).quantize(MILLIME, rounding=ROUND_HALF_UP)
    if amount == 0:
        amount = amount.copy_abs()
    return amount


def currency_symbol(code) -> str:
    code = (code or "TND").upper()
    return " " + CURRENCY_SYMBOLS.get(code, code)


def currency_name(code) -> str:
    code = (code or "TND").upper()
    return CURRENCY_NAMES.get(code, code)


def format_amount(value, currency=None) -> str:
    """``1234.5`` -> ``"1234.500 DT"``; without a currency, the bare number."""
    text = f"{to_millimes(value):.3f}"
    if currency:
        text += currency_symbol(currency)
    return text


def format_percent(value) -> str:
    pct = parse_decimal(value)
    if pct == pct.to_integral_value():
        return f"{int(pct)} %"
    return f"{pct.normalize():f} %"


def _below_hundred(n):
    if n < 20:
        return UNITS[n]
    ten, unit = divmod(n, 10)
    if ten in (7, 9):
        if ten == 7 and unit == 1:
            return "soixante et onze"
        return TENS[ten] + "-" + UNITS[10 + unit]
    if unit == 0:
        return "quatre-vingts" if ten == 8 else TENS[ten]
    if unit == 1 and ten != 8:
        return TENS[ten] + " et un"
    return TENS[ten] + "-" + UNITS[unit]


def _below_thousand(n, plural=True):
    # "cents" and "quatre-vingts" lose their s before "mille"
    hundred, rest = divmod(n, 100)
    if hundred == 0:
        words = _below_hundred(rest)
    elif hundred == 1:
        words = "cent" + (" " + _below_hundred(rest) if rest else "")
    else:
        words = UNITS[hundred] + " cent"
        if rest:
            words += " " + _below_hundred(rest)
        elif plural:
            words += "s"
    if not plural and words.endswith("quatre-vingts"):
        words = words[:-1]
    return words


def number_to_words_fr(num: int) -> str:
    """Spell out a non-negative integer in French."""
    num = int(num)
    if num < 0:
        raise ValueError(f"cannot spell a negative number: {num}")
    if num == 0:
        return "zéro"

    parts = []
    billions, num = divmod(num, 10 ** 9)
    if billions:
        parts.append(number_to_words_fr(billions) + " milliard" + ("s" if billions > 1 else ""))
    millions, num = divmod(num, 10 ** 6)
    if millions:
        parts.append(_below_thousand(millions) + " million" + ("s" if millions > 1 else ""))
    thousands, num = divmod(num, 1000)
    if thousands == 1:
        parts.append("mille")
    elif thousands:
        parts.append(_below_thousand(thousands, plural=False) + " mille")
    if num:
        parts.append(_below_thousand(num))
    return " ".join(parts)


def amount_to_words_fr(amount, currency: str = "Dinars") -> str:
    """
    Spell out an amount with its millimes, e.g.
    ``"cent vingt Dinars tunisiens et cinq cents millimes"``.
    """
    amount = to_millimes(amount)
    if amount < 0:
        return "moins " + amount_to_words_fr(-amount, currency)

    whole = int(amount)
    millimes = int((amount - whole) * 1000)

    result = ""
    if whole > 0:
        result = number_to_words_fr(whole) + " " + currency
        if whole > 1 and not currency.lower().endswith("s"):
            result += "s"

    if millimes > 0:
        if whole > 0:
            result += " et "
        result += number_to_words_fr(millimes) + " millime"
        if millimes > 1:
            result += "s"

    return result or "zéro " + currency
