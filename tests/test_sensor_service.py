"""
BlueCarbon Registry - Sensor Service Tests
============================================
"""

from decimal import Decimal

import pytest

from blue_carbon.domain.events import EventType
from blue_carbon.errors import NotFoundError, ValidationError


class TestSensorService:
    """Test SensorService"""

    def test_record_reading(self, sensor_service, pending_project):
        """Test stored reading with ingestion timestamp"""
        reading = sensor_service.record_sensor_reading(
            pending_project.id, "co2", "2.3", "t/ha/yr",
            metadata={"device_id": "CO2-001"}
        )

        assert reading.value == Decimal("2.3")
        assert reading.sensor_type == "co2"
        assert reading.timestamp.tzinfo is not None
        assert reading.metadata == {"device_id": "CO2-001"}

    def test_unknown_project(self, sensor_service):
        """Test reading for missing project"""
        with pytest.raises(NotFoundError):
            sensor_service.record_sensor_reading("missing", "co2", "1", "u")

    def test_unknown_sensor_type(self, sensor_service, pending_project):
        """Test sensor type validation"""
        with pytest.raises(ValidationError):
            sensor_service.record_sensor_reading(pending_project.id, "radar", "1", "u")

    def test_non_numeric_value(self, sensor_service, pending_project):
        """Test value must be numeric"""
        with pytest.raises(ValidationError):
            sensor_service.record_sensor_reading(pending_project.id, "co2", "high", "u")

    def test_readings_newest_first(self, sensor_service, pending_project):
        """Test time-ordered history"""
        for value in ("1", "2", "3"):
            sensor_service.record_sensor_reading(pending_project.id, "biomass", value, "t/ha")

        values = [r.value for r in sensor_service.readings_for_project(pending_project.id)]
        assert values == [Decimal("3"), Decimal("2"), Decimal("1")]

    def test_latest_reading_by_type(self, sensor_service, pending_project):
        """Test latest per sensor type"""
        sensor_service.record_sensor_reading(pending_project.id, "co2", "1", "u")
        sensor_service.record_sensor_reading(pending_project.id, "biomass", "9", "u")
        sensor_service.record_sensor_reading(pending_project.id, "co2", "4", "u")

        latest = sensor_service.latest_reading(pending_project.id, "co2")
        assert latest.value == Decimal("4")
        assert sensor_service.latest_reading(pending_project.id, "weather") is None

    def test_publishes_event(self, sensor_service, pending_project, recorder):
        """Test SENSOR_RECORDED"""
        sensor_service.record_sensor_reading(pending_project.id, "co2", "1", "u")
        assert len(recorder.of_type(EventType.SENSOR_RECORDED)) == 1
