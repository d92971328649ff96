import re
from typing import Any

from cepweather.core.exceptions import InvalidPostalCode

CEP_LENGTH = 8
_CEP_PATTERN = re.compile(r"[0-9]{%d}" % CEP_LENGTH)


def is_valid_cep(cep: Any) -> bool:
    """True when ``cep`` is a string of exactly eight ASCII digits."""
    return isinstance(cep, str) and _CEP_PATTERN.fullmatch(cep) is not None


def validate_cep(
    cep: Any,
    message: str = "invalid zipcode",
    status_code: int = 422
) -> str:
    """
    Apply the canonical CEP rule.

    Both services call this with their own boundary message and status; the
    rule itself never differs.

    Args:
        cep: Value taken from the request body
        message: Public message for the rejection
        status_code: HTTP status for the rejection

    Returns:
        The validated CEP

    Raises:
        InvalidPostalCode: If the value is not eight decimal digits
    """
    if not is_valid_cep(cep):
        raise InvalidPostalCode(
            message=message,
            status_code=status_code,
            details={"cep": cep}
        )
    return cep
