from dataclasses import dataclass
from typing import Any, Dict

KELVIN_OFFSET = 273


def celsius_to_kelvin(temp_c: float) -> float:
    """
    Linear Kelvin conversion used across the chain.

    Uses +273 rather than +273.15; both services must agree on this value.
    """
    return temp_c + KELVIN_OFFSET


@dataclass(frozen=True)
class PostalCodeRecord:
    """Domain model for a resolved postal code."""

    code: str
    state: str
    city: str
    neighborhood: str
    street: str

    @classmethod
    def from_provider(cls, data: Dict[str, Any]) -> "PostalCodeRecord":
        """Maps a ViaCEP payload to a PostalCodeRecord."""
        return cls(
            code=_as_text(data.get("cep")),
            state=_as_text(data.get("estado") or data.get("uf")),
            city=_as_text(data.get("localidade")),
            neighborhood=_as_text(data.get("bairro")),
            street=_as_text(data.get("logradouro")),
        )

    def is_found(self) -> bool:
        """A record without a city means the provider did not know the code."""
        return bool(self.city.strip())


@dataclass(frozen=True)
class WeatherReading:
    """Domain model for the current weather at a location."""

    location_name: str
    temp_c: float
    temp_f: float
    updated_at: str
    condition: str


@dataclass(frozen=True)
class TemperatureResponse:
    """Externally visible temperature in three units."""

    temp_c: float
    temp_f: float
    temp_k: float

    @classmethod
    def from_reading(cls, reading: WeatherReading) -> "TemperatureResponse":
        return cls(
            temp_c=reading.temp_c,
            temp_f=reading.temp_f,
            temp_k=celsius_to_kelvin(reading.temp_c),
        )

    def with_recomputed_kelvin(self) -> "TemperatureResponse":
        """Copy with temp_k derived from temp_c, ignoring the received value."""
        return TemperatureResponse(
            temp_c=self.temp_c,
            temp_f=self.temp_f,
            temp_k=celsius_to_kelvin(self.temp_c),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"temp_c": self.temp_c, "temp_f": self.temp_f, "temp_k": self.temp_k}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
