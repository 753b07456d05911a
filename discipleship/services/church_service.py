"""Church (tenant) service."""

from typing import Any

import structlog

from discipleship.core.authorization import can_access_church, check_permission, ensure
from discipleship.core.context import RequestContext
from discipleship.core.exceptions import NotFoundException
from discipleship.core.permissions import Permission
from discipleship.repositories.church_repository import ChurchRepository
from discipleship.repositories.student_repository import StudentRepository
from discipleship.repositories.study_repository import StudyRepository
from discipleship.schemas.churches import Church, ChurchCreate, ChurchStats, ChurchUpdate
from discipleship.schemas.common import utcnow
from discipleship.schemas.studies import StudyStatus
from discipleship.services.journey import count_milestones_since, start_of_month

logger = structlog.get_logger()


class ChurchService:
    """Service for church onboarding, settings and dashboard statistics."""

    def __init__(self, table: Any):
        """Initialize service with the application table."""
        self.churches = ChurchRepository(table)
        self.students = StudentRepository(table)
        self.studies = StudyRepository(table)

    async def get_church(self, church_id: str) -> Church:
        church = await self.churches.find_by_id(church_id)
        if not church:
            raise NotFoundException("Church not found", code="CHURCH_NOT_FOUND")
        return church

    async def get_accessible_church(self, context: RequestContext, church_id: str) -> Church:
        ensure(can_access_church(context, church_id), "You do not have access to this church")
        return await self.get_church(church_id)

    async def list_churches(self) -> list[Church]:
        return await self.churches.list_all()

    async def create_church(self, data: ChurchCreate) -> Church:
        church = await self.churches.create(data)
        logger.info("church_created", church_id=church.id, slug=church.slug)
        return church

    async def update_church(
        self,
        context: RequestContext,
        church_id: str,
        data: ChurchUpdate,
    ) -> Church:
        """
        Update church details and settings.

        Raises:
            ForbiddenException: If the subscription is changed without
                ``system:manage-subscriptions``
            NotFoundException: If the church does not exist
        """
        if "subscription" in data.model_fields_set:
            ensure(
                check_permission(context, Permission.SYSTEM_MANAGE_SUBSCRIPTIONS),
                "Subscriptions are managed by the platform",
            )

        church = await self.churches.update(church_id, data)
        if not church:
            raise NotFoundException("Church not found", code="CHURCH_NOT_FOUND")

        logger.info("church_updated", church_id=church_id, fields=sorted(data.model_fields_set))
        return church

    async def get_stats(self, church_id: str) -> ChurchStats:
        """Dashboard counters, computed by scanning the church's students and studies."""
        students = await self.students.list_all_by_church(church_id)
        studies = await self.studies.list_all_by_church(church_id)

        baptisms, holy_ghost = count_milestones_since(students, start_of_month(utcnow()))
        return ChurchStats(
            total_students=len(students),
            active_studies=sum(1 for s in studies if s.status == StudyStatus.IN_PROGRESS),
            completed_journeys=sum(1 for s in students if s.completion_date is not None),
            baptisms_this_month=baptisms,
            holy_ghost_this_month=holy_ghost,
        )
