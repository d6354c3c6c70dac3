"""
BlueCarbon Registry - Project Service
=======================================
Registrazione e verifica progetti di restauro costiero.

Last Updated: 2026-10-18
Version: 1.0.0

State machine:
    pending --approve--> verified
    pending --reject-->  rejected
verified e rejected sono terminali.
"""

from typing import Any, Dict, List, Optional, Union

from blue_carbon.constants import ProjectStatus, VerificationDecision
from blue_carbon.domain.events import EventType
from blue_carbon.domain.models import Project, utcnow
from blue_carbon.domain.validation import parse_decision
from blue_carbon.errors import InvalidTransitionError
from blue_carbon.logging_setup import get_logger
from blue_carbon.services.base import RegistryService


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("project_service")


# ============================================================================
# PROJECT SERVICE
# ============================================================================

class ProjectService(RegistryService):
    """
    Servizio gestione progetti.

    Examples:
        >>> service = ProjectService(store, config)
        >>> project = service.register_project({"name": "Kerala", ...})
        >>> service.verify_project(project.id, "approve").status
        'verified'
    """

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def register_project(self, data: Any) -> Project:
        """
        Registra nuovo progetto (status pending, nessun credito).

        Args:
            data: Payload ProjectInput (dict camelCase o snake_case)

        Returns:
            Project: Progetto creato

        Raises:
            ValidationError: Nome/tipo/location/area mancanti o invalidi
        """
        project = self.store.projects.create(data)

        logger.info(
            "Project registered",
            extra_data={
                "project_id": project.id,
                "project_type": project.project_type,
                "area": str(project.area)
            }
        )
        self.audit.log_project_registered(project.id, project.project_type, project.developer_id)
        self._publish(EventType.PROJECT_REGISTERED, project)

        return project

    def verify_project(
        self,
        project_id: str,
        decision: Union[str, VerificationDecision]
    ) -> Project:
        """
        Esito verifica: approve -> verified (verified_at = now), reject -> rejected.

        Raises:
            NotFoundError: Progetto inesistente
            ValidationError: Decisione sconosciuta
            InvalidTransitionError: Progetto non più pending
        """
        verdict = parse_decision(decision)

        with self.store.atomic():
            project = self.store.projects.get(project_id)

            if not project.is_pending():
                raise InvalidTransitionError(
                    f"Project '{project_id}' is {project.status}, only pending projects can be verified",
                    code="PROJECT_NOT_PENDING",
                    details={
                        "id": project_id,
                        "status": project.status,
                        "decision": verdict.value
                    }
                )

            if verdict is VerificationDecision.APPROVE:
                patch = {"status": ProjectStatus.VERIFIED.value, "verified_at": utcnow()}
            else:
                patch = {"status": ProjectStatus.REJECTED.value}

            project = self.store.projects.update(project_id, patch)

        logger.info(
            f"Project {project.status}",
            extra_data={"project_id": project_id, "decision": verdict.value}
        )
        self.audit.log_project_verified(project.id, project.status)
        self._publish(
            EventType.PROJECT_VERIFIED if project.is_verified() else EventType.PROJECT_REJECTED,
            project
        )

        return project

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_project(self, project_id: str) -> Project:
        return self.store.projects.get(project_id)

    def list_projects(
        self,
        project_type: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[Project]:
        """
        Lista progetti con filtri.

        Args:
            project_type: Filtra per tipo
            status: Filtra per stato
        """
        filters = {}
        if project_type:
            filters["project_type"] = project_type
        if status:
            filters["status"] = status
        return self.store.projects.list(**filters)

    def projects_by_developer(self, developer_id: str) -> List[Project]:
        return self.store.projects.list(developer_id=developer_id)

    def get_projects_by_type(self) -> Dict[str, List[Project]]:
        """
        Group progetti per tipo.

        Returns:
            dict: {project_type: [projects]}
        """
        by_type: Dict[str, List[Project]] = {}
        for project in self.store.projects.list():
            by_type.setdefault(project.project_type, []).append(project)
        return by_type


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "ProjectService",
]
