"""
BlueCarbon Registry - Project Service Tests
=============================================
Registrazione e verifica progetti.
"""

import pytest

from blue_carbon.domain.events import EventType
from blue_carbon.errors import InvalidTransitionError, NotFoundError, ValidationError


class TestRegisterProject:
    """Test register_project"""

    def test_register_creates_pending_project(self, pending_project, sample_project_data):
        """Test new project is pending with no verification timestamp"""
        assert pending_project.status == "pending"
        assert pending_project.verified_at is None
        assert pending_project.name == sample_project_data["name"]
        assert pending_project.project_type == "mangrove"
        assert str(pending_project.area) == "50"

    def test_register_accepts_snake_case(self, project_service):
        """Test snake_case payload keys"""
        project = project_service.register_project({
            "name": "Snake",
            "project_type": "salt_marsh",
            "area": 7,
            "location": "Delta",
            "developer_id": "dev",
        })
        assert project.project_type == "salt_marsh"

    def test_register_rejects_missing_location(self, project_service, sample_project_data):
        """Test missing required field"""
        del sample_project_data["location"]

        with pytest.raises(ValidationError):
            project_service.register_project(sample_project_data)

        assert project_service.list_projects() == []

    def test_register_rejects_negative_area(self, project_service, sample_project_data):
        """Test area <= 0"""
        sample_project_data["area"] = "-5"
        with pytest.raises(ValidationError):
            project_service.register_project(sample_project_data)

    def test_register_publishes_event(self, pending_project, recorder):
        """Test PROJECT_REGISTERED event"""
        events = recorder.of_type(EventType.PROJECT_REGISTERED)
        assert len(events) == 1
        assert events[0].entity.id == pending_project.id


class TestVerifyProject:
    """Test verify_project"""

    def test_approve_sets_verified_at(self, project_service, pending_project):
        """Test approve -> verified"""
        project = project_service.verify_project(pending_project.id, "approve")

        assert project.status == "verified"
        assert project.verified_at is not None
        assert project_service.get_project(pending_project.id).is_verified()

    def test_reject(self, project_service, pending_project, recorder):
        """Test reject -> rejected, verified_at stays empty"""
        project = project_service.verify_project(pending_project.id, "reject")

        assert project.status == "rejected"
        assert project.verified_at is None
        assert len(recorder.of_type(EventType.PROJECT_REJECTED)) == 1

    def test_target_status_aliases(self, project_service, pending_project):
        """Test 'verified' accepted as approve"""
        project = project_service.verify_project(pending_project.id, "verified")
        assert project.status == "verified"

    def test_verified_project_cannot_be_verified_again(self, project_service, verified_project):
        """Test verified is terminal"""
        with pytest.raises(InvalidTransitionError) as exc_info:
            project_service.verify_project(verified_project.id, "reject")

        assert exc_info.value.code == "PROJECT_NOT_PENDING"
        assert project_service.get_project(verified_project.id).status == "verified"

    def test_rejected_project_cannot_be_approved(self, project_service, pending_project):
        """Test rejected is terminal"""
        project_service.verify_project(pending_project.id, "reject")

        with pytest.raises(InvalidTransitionError):
            project_service.verify_project(pending_project.id, "approve")

    def test_unknown_decision(self, project_service, pending_project):
        """Test decision validation"""
        with pytest.raises(ValidationError) as exc_info:
            project_service.verify_project(pending_project.id, "maybe")

        assert exc_info.value.code == "INVALID_DECISION"
        assert project_service.get_project(pending_project.id).is_pending()

    def test_unknown_project(self, project_service):
        """Test verify on missing project"""
        with pytest.raises(NotFoundError):
            project_service.verify_project("missing", "approve")


class TestProjectQueries:
    """Test list/filter queries"""

    def test_filters(self, project_service, sample_project_data):
        """Test filter by type and status"""
        mangrove = project_service.register_project(sample_project_data)
        seagrass = project_service.register_project({**sample_project_data, "projectType": "seagrass"})
        project_service.verify_project(seagrass.id, "approve")

        assert [p.id for p in project_service.list_projects(project_type="mangrove")] == [mangrove.id]
        assert [p.id for p in project_service.list_projects(status="verified")] == [seagrass.id]
        assert len(project_service.list_projects()) == 2

    def test_group_by_type(self, project_service, sample_project_data):
        """Test get_projects_by_type"""
        project_service.register_project(sample_project_data)
        project_service.register_project(sample_project_data)
        project_service.register_project({**sample_project_data, "projectType": "salt_marsh"})

        grouped = project_service.get_projects_by_type()
        assert len(grouped["mangrove"]) == 2
        assert len(grouped["salt_marsh"]) == 1

    def test_projects_by_developer(self, project_service, pending_project):
        """Test developer filter"""
        assert project_service.projects_by_developer("0xDEVELOPER") == [pending_project]
        assert project_service.projects_by_developer("0xOTHER") == []
