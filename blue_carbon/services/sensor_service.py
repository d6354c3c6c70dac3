"""
BlueCarbon Registry - Sensor Service
======================================
Ingestione telemetria (append-only, ordinata per tempo).
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from blue_carbon.domain.events import EventType
from blue_carbon.domain.models import SensorData
from blue_carbon.logging_setup import get_logger
from blue_carbon.services.base import RegistryService


logger = get_logger("sensor_service")


class SensorService(RegistryService):
    """
    Servizio letture sensore.

    Examples:
        >>> service = SensorService(store, config)
        >>> service.record_sensor_reading("project-1", "co2", "2.3", "t/ha/yr")
    """

    def record_sensor_reading(
        self,
        project_id: str,
        sensor_type: str,
        value: Union[Decimal, str, float, int],
        unit: str,
        metadata: Optional[Dict[str, Any]] = None,
        latitude: Union[Decimal, str, float, None] = None,
        longitude: Union[Decimal, str, float, None] = None
    ) -> SensorData:
        """
        Registra lettura con timestamp di ingestione.

        Raises:
            NotFoundError: Progetto inesistente
            ValidationError: Tipo sensore sconosciuto o valore non numerico
        """
        reading = self.store.sensor_data.create({
            "project_id": project_id,
            "sensor_type": sensor_type,
            "value": value,
            "unit": unit,
            "latitude": latitude,
            "longitude": longitude,
            "metadata": metadata or {},
        })

        logger.debug(
            "Sensor reading recorded",
            extra_data={
                "project_id": project_id,
                "sensor_type": reading.sensor_type,
                "value": str(reading.value)
            }
        )
        self._publish(EventType.SENSOR_RECORDED, reading)

        return reading

    def readings_for_project(
        self,
        project_id: str,
        sensor_type: Optional[str] = None
    ) -> List[SensorData]:
        """Letture del progetto, più recenti prima"""
        filters = {"project_id": project_id}
        if sensor_type:
            filters["sensor_type"] = sensor_type
        return self.store.sensor_data.list(newest_first=True, **filters)

    def latest_reading(self, project_id: str, sensor_type: str) -> Optional[SensorData]:
        """Ultima lettura per (progetto, tipo sensore), None se assente"""
        readings = self.readings_for_project(project_id, sensor_type)
        return readings[0] if readings else None


__all__ = [
    "SensorService",
]
