"""
BlueCarbon Registry - Validation & Model Tests
================================================
Schemi input e invarianti delle entità.
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from blue_carbon.constants import VerificationDecision
from blue_carbon.domain.models import CarbonCredit, Project, Transaction, to_camel, utcnow
from blue_carbon.domain.validation import (
    CreditInput,
    ProjectInput,
    parse_decision,
    validate_input,
)
from blue_carbon.errors import ValidationError


def make_project(**overrides) -> Project:
    values = dict(
        id="p-1",
        name="Model Project",
        description="",
        project_type="mangrove",
        area=Decimal("10"),
        location="Coast",
        developer_id="dev",
    )
    values.update(overrides)
    return Project(**values)


class TestInputSchemas:
    """Test Pydantic input schemas"""

    def test_camel_and_snake_keys(self):
        """Test both key styles"""
        camel = validate_input(ProjectInput, {
            "name": "A", "projectType": "seagrass", "area": "1", "location": "L", "developerId": "d",
        })
        snake = validate_input(ProjectInput, {
            "name": "A", "project_type": "seagrass", "area": "1", "location": "L", "developer_id": "d",
        })
        assert camel == snake
        assert camel.project_type == "seagrass"

    def test_field_errors_are_reported(self):
        """Test per-field details"""
        with pytest.raises(ValidationError) as exc_info:
            validate_input(ProjectInput, {"name": "", "area": "-1"})

        error = exc_info.value
        assert error.code == "VALIDATION_FAILED"
        assert error.details["schema"] == "ProjectInput"
        fields = {f["field"] for f in error.details["fields"]}
        assert {"name", "area", "location"} <= fields

    def test_latitude_range(self):
        """Test coordinate bounds"""
        with pytest.raises(ValidationError):
            validate_input(ProjectInput, {
                "name": "A", "projectType": "mangrove", "area": "1",
                "location": "L", "developerId": "d", "latitude": "91",
            })

    def test_validated_instance_passes_through(self):
        """Test validate_input on existing instance"""
        payload = CreditInput(project_id="p", amount=1, price=Decimal("1"), owner_id="o")
        assert validate_input(CreditInput, payload) is payload

    def test_credit_defaults(self):
        """Test co2 default"""
        payload = validate_input(CreditInput, {"projectId": "p", "amount": 3, "price": "2", "ownerId": "o"})
        assert payload.co2_amount == Decimal("1.0")
        assert payload.token_id is None


class TestParseDecision:
    """Test parse_decision"""

    @pytest.mark.parametrize("raw,expected", [
        ("approve", VerificationDecision.APPROVE),
        ("APPROVE", VerificationDecision.APPROVE),
        ("verified", VerificationDecision.APPROVE),
        ("reject", VerificationDecision.REJECT),
        (" rejected ", VerificationDecision.REJECT),
        (VerificationDecision.REJECT, VerificationDecision.REJECT),
    ])
    def test_accepted_values(self, raw, expected):
        """Test aliases"""
        assert parse_decision(raw) is expected

    def test_unknown(self):
        """Test invalid decision"""
        with pytest.raises(ValidationError):
            parse_decision("pending")


class TestEntityInvariants:
    """Test invariants in __post_init__"""

    def test_verified_requires_timestamp(self):
        """Test verified_at iff verified"""
        with pytest.raises(ValidationError) as exc_info:
            make_project(status="verified")
        assert exc_info.value.code == "VERIFIED_AT_MISMATCH"

        with pytest.raises(ValidationError):
            make_project(verified_at=utcnow())

        assert make_project(status="verified", verified_at=utcnow()).is_verified()

    def test_replace_revalidates(self):
        """Test dataclasses.replace runs invariants"""
        project = make_project()
        with pytest.raises(ValidationError):
            replace(project, area=Decimal("0"))

    def test_credit_retirement_fields_together(self):
        """Test retired_at and retired_by only when retired"""
        base = dict(
            id="c-1", project_id="p-1", token_id="BCR-1", amount=5,
            price=Decimal("2"), owner_id="o", co2_amount=Decimal("1"),
        )
        with pytest.raises(ValidationError):
            CarbonCredit(**base, status="retired", retired_at=utcnow())

        credit = CarbonCredit(**base)
        assert credit.total_value() == Decimal("10")
        assert credit.total_co2() == Decimal("5")

    def test_transaction_type(self):
        """Test unknown transaction type"""
        with pytest.raises(ValidationError):
            Transaction(id="t", type="gift", credit_id="c", amount=1, tx_hash="0x")

    def test_to_dict_serialization(self):
        """Test camelCase keys, decimal strings, ISO datetimes"""
        project = make_project(latitude=Decimal("11.0168"))
        data = project.to_dict()

        assert data["projectType"] == "mangrove"
        assert data["area"] == "10"
        assert data["latitude"] == "11.0168"
        assert data["verifiedAt"] is None
        assert data["createdAt"].endswith("+00:00")
        assert project.to_dict(camel=False)["developer_id"] == "dev"

    def test_to_camel(self):
        """Test key conversion"""
        assert to_camel("co2_amount") == "co2Amount"
        assert to_camel("id") == "id"
