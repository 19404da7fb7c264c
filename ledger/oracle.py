# =============================================================================
# PARAMETRIC LEDGER - MEASUREMENT ORACLES
# =============================================================================
#
# The oracle is the single external data dependency of the ledger.
# Each oracle implements OracleBase and returns one Measurement snapshot.
#
# ISOLATION:
# - READ-ONLY: Fetches measurements, does not touch the ledger
# - Any failure surfaces as OracleUnavailableError. There is no fallback
#   value: a claim cycle without a measurement must abort.
#
# =============================================================================

import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional, Dict, Any

import requests

from ledger.exceptions import OracleUnavailableError
from ledger.models import Measurement

logger = logging.getLogger(__name__)


# =============================================================================
# ORACLE BASE CLASS
# =============================================================================

class OracleBase(ABC):
    """Abstract base class for all measurement oracles."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Unique name for this source (e.g. 'open_meteo')."""
        ...

    @abstractmethod
    def fetch_measurement(self) -> Measurement:
        """
        Fetch one atomic measurement snapshot.

        Raises:
            OracleUnavailableError: If no measurement can be produced
        """
        ...


# =============================================================================
# STATIC ORACLE
# =============================================================================

class StaticOracle(OracleBase):
    """
    Oracle that reports a fixed, settable snapshot.

    Used for tests, demos and manual operation where the measured
    condition is entered by an operator.
    """

    def __init__(self, rainfall: int = 0, temperature: int = 0):
        self._measurement: Optional[Measurement] = None
        self.fetch_count = 0
        self.set_measurement(rainfall, temperature)

    @property
    def source_name(self) -> str:
        return "static"

    def set_measurement(self, rainfall: int, temperature: int) -> None:
        """Replace the reported snapshot."""
        self._measurement = Measurement(
            rainfall=rainfall,
            temperature=temperature,
            source=self.source_name,
        )

    def set_unavailable(self) -> None:
        """Make every subsequent fetch fail until set_measurement is called."""
        self._measurement = None

    def fetch_measurement(self) -> Measurement:
        self.fetch_count += 1
        if self._measurement is None:
            raise OracleUnavailableError("static oracle has no measurement")
        return Measurement(
            rainfall=self._measurement.rainfall,
            temperature=self._measurement.temperature,
            source=self.source_name,
            observed_at=datetime.now(timezone.utc).isoformat(),
        )


# =============================================================================
# OPEN-METEO ORACLE
# =============================================================================

OPEN_METEO_API_BASE = "https://api.open-meteo.com/v1/forecast"
REQUEST_TIMEOUT = 12  # seconds


class OpenMeteoOracle(OracleBase):
    """
    Open-Meteo daily observations for one location.

    Free API, no key required. Reports the last complete day:
    - rainfall: precipitation_sum in mm, rounded to int
    - temperature: temperature_2m_max in degrees Celsius, rounded to int

    Negative temperatures are reported as 0. For any unsigned threshold
    t, neither a negative value nor 0 is > t, so the verdict is unchanged.
    """

    def __init__(
        self,
        latitude: float,
        longitude: float,
        timeout: int = REQUEST_TIMEOUT,
        base_url: str = OPEN_METEO_API_BASE,
    ):
        """
        Args:
            latitude: Location latitude
            longitude: Location longitude
            timeout: HTTP timeout in seconds, bounds the only blocking
                     step of a claim cycle
            base_url: API endpoint
        """
        self.latitude = latitude
        self.longitude = longitude
        self.timeout = timeout
        self.base_url = base_url

    @property
    def source_name(self) -> str:
        return "open_meteo"

    def _request(self) -> Dict[str, Any]:
        params = {
            "latitude": f"{self.latitude:.4f}",
            "longitude": f"{self.longitude:.4f}",
            "daily": "precipitation_sum,temperature_2m_max",
            "past_days": 1,
            "forecast_days": 1,
            "timezone": "UTC",
        }
        try:
            resp = requests.get(
                self.base_url,
                params=params,
                timeout=self.timeout,
                headers={"User-Agent": "ParametricLedger/0.1"},
            )
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.Timeout:
            raise OracleUnavailableError(f"Open-Meteo timeout after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            raise OracleUnavailableError(f"Open-Meteo request failed: {e}")
        except ValueError as e:
            raise OracleUnavailableError(f"Open-Meteo returned invalid JSON: {e}")

    def fetch_measurement(self) -> Measurement:
        data = self._request()

        daily = data.get("daily") if isinstance(data, dict) else None
        if not isinstance(daily, dict):
            raise OracleUnavailableError("Open-Meteo response has no daily block")

        precip = daily.get("precipitation_sum") or []
        temps = daily.get("temperature_2m_max") or []
        days = daily.get("time") or []

        # Index 0 is yesterday (past_days=1), the last complete day
        if not precip or not temps or precip[0] is None or temps[0] is None:
            raise OracleUnavailableError("Open-Meteo response is missing daily values")

        # Rainfall rounds down, temperature up: against integer thresholds
        # the strict comparisons then match the fractional reading.
        try:
            rainfall = max(0, math.floor(float(precip[0])))
            temperature = max(0, math.ceil(float(temps[0])))
        except (TypeError, ValueError, OverflowError) as e:
            raise OracleUnavailableError(f"Open-Meteo values not numeric: {e}")

        observed_at = days[0] if days else None
        logger.info(
            f"Open-Meteo ({self.latitude:.2f}, {self.longitude:.2f}) {observed_at}: "
            f"rainfall={rainfall}mm temperature={temperature}C"
        )

        return Measurement(
            rainfall=rainfall,
            temperature=temperature,
            source=self.source_name,
            observed_at=observed_at,
        )
