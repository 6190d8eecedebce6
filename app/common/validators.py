"""
Validadores compartidos: contraseñas, teléfonos, duraciones de tokens y filtros de consulta
"""
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from uuid import UUID


PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

DEFAULT_TOKEN_LIFETIME = 7 * 24 * 60 * 60

_DURATION_UNITS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
}


def validate_password_strength(password: str) -> Optional[str]:
    """
    Valida la fortaleza de una contraseña.

    Reglas:
    - Entre 8 y 128 caracteres
    - Al menos una letra
    - Al menos un dígito

    Returns:
        None si es válida, o el mensaje de error
    """
    if password is None or len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
    if len(password) > PASSWORD_MAX_LENGTH:
        return f"Password must be at most {PASSWORD_MAX_LENGTH} characters long"
    if not re.search(r'[A-Za-z]', password):
        return "Password must contain at least one letter"
    if not re.search(r'[0-9]', password):
        return "Password must contain at least one number"
    return None


def validate_phone(phone: str) -> bool:
    """
    Valida un número de teléfono en formato internacional laxo.
    Acepta +, espacios, guiones y paréntesis; entre 7 y 15 dígitos.
    """
    cleaned = re.sub(r'[\s\-\(\)]', '', phone)
    return bool(re.match(r'^\+?[0-9]{7,15}$', cleaned))


def parse_duration(value: str, default: int = DEFAULT_TOKEN_LIFETIME) -> int:
    """
    Convierte duraciones tipo '7d', '24h', '60m' o '3600s' a segundos.
    Un número sin unidad se interpreta como segundos.
    """
    if value is None:
        return default
    match = re.match(r'^\s*(\d+)\s*([smhd]?)\s*$', str(value))
    if not match:
        return default
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS.get(unit or "s")


def is_valid_uuid(value: str) -> bool:
    try:
        UUID(str(value))
        return True
    except (ValueError, TypeError, AttributeError):
        return False


def parse_bool_param(value: Optional[str]) -> Optional[bool]:
    """Parsea un parámetro de consulta 'true'/'false'. Lanza ValueError si no es válido."""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise ValueError(f"Invalid boolean value '{value}', expected true or false")


def parse_date_param(value: Optional[str]) -> Optional[date]:
    """Parsea fechas ISO (YYYY-MM-DD o datetime ISO). Lanza ValueError si no es válida."""
    if value is None or value == "":
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    """Último instante del día, para rangos de fecha inclusivos."""
    return datetime.combine(value, time.min) + timedelta(days=1) - timedelta(microseconds=1)


def as_decimal(value) -> Decimal:
    """Convierte int/float/str/None a Decimal sin arrastrar errores de float."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> float:
    return float(as_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
