"""
View Models for dashboard screens
Loaders that read through the shared cache and map raw rows into
presentation-ready payloads. Screens depend on these instead of keeping
their own maps of key -> (data, timestamp).
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from classroom.cache import CacheManager, PreloadConfig, TTLClass, get_cache_manager
from classroom.cache.ttl_policies import get_ttl_class_for_resource

logger = logging.getLogger("view_models")


# =============================================================================
# PAYLOAD CONTRACTS
# =============================================================================


@dataclass
class OrganizationPayload:
    """Organization option for pickers and filters."""
    id: str
    name: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "OrganizationPayload":
        return cls(id=str(row.get("id")), name=row.get("name") or "Unnamed organization")


@dataclass
class AssignmentPayload:
    """Assignment card for management lists and the gallery."""
    id: str
    title: str
    status: str
    organization_id: Optional[str] = None
    category: Optional[str] = None
    topic: Optional[str] = None
    difficulty_level: Optional[str] = None
    estimated_time_minutes: Optional[int] = None
    due_date: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AssignmentPayload":
        return cls(
            id=str(row.get("id")),
            title=row.get("title") or "Untitled assignment",
            status=row.get("status") or "draft",
            organization_id=row.get("organization_id"),
            category=row.get("category"),
            topic=row.get("topic"),
            difficulty_level=row.get("difficulty_level"),
            estimated_time_minutes=row.get("estimated_time_minutes"),
            due_date=row.get("due_date"),
            created_at=row.get("created_at"),
        )


@dataclass
class QuestionPayload:
    id: str
    assignment_id: str
    question_type: str
    question_text: str
    order: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "QuestionPayload":
        return cls(
            id=str(row.get("id")),
            assignment_id=str(row.get("assignment_id")),
            question_type=row.get("question_type") or "unknown",
            question_text=row.get("question_text") or "",
            order=row.get("order") or 0,
        )


@dataclass
class ActivityPayload:
    """
    One row of the activity dashboard.

    ``user_name`` comes from the anonymous user record when there is one.
    """
    id: str
    assignment_id: str
    assignment_title: str
    user_id: Optional[str]
    user_name: str
    status: str
    score: Optional[float] = None
    started_at: Optional[str] = None
    submitted_at: Optional[str] = None
    is_anonymous: bool = False

    @classmethod
    def from_row(
        cls,
        row: Dict[str, Any],
        anonymous_users: Dict[str, Dict[str, Any]],
    ) -> "ActivityPayload":
        assignment = row.get("interactive_assignment") or {}
        user_id = row.get("user_id")
        anonymous = anonymous_users.get(user_id) if user_id else None
        return cls(
            id=str(row.get("id")),
            assignment_id=str(row.get("assignment_id")),
            assignment_title=assignment.get("title") or "Unknown assignment",
            user_id=user_id,
            user_name=(anonymous or {}).get("name") or "Unknown user",
            status=row.get("status") or "in_progress",
            score=row.get("score"),
            started_at=row.get("started_at"),
            submitted_at=row.get("submitted_at"),
            is_anonymous=anonymous is not None,
        )


@dataclass
class DashboardSummary:
    organizations: List[OrganizationPayload] = field(default_factory=list)
    assignments: List[AssignmentPayload] = field(default_factory=list)
    role: Optional[str] = None


SUBMISSION_COLUMNS = """
    id,
    assignment_id,
    user_id,
    status,
    score,
    started_at,
    submitted_at,
    interactive_assignment(title, organization_id)
"""


# =============================================================================
# LOADERS
# =============================================================================


class DashboardData:
    """
    Cached reads used by the admin and user dashboards.

    Args:
        cache: Cache manager to read through; the shared instance by default
    """

    def __init__(self, cache: Optional[CacheManager] = None):
        self.cache = cache or get_cache_manager()

    async def list_organizations(
        self,
        principal_id: Optional[str] = None,
        force_refresh: bool = False,
    ) -> List[OrganizationPayload]:
        rows = await self.cache.optimized_fetch(
            "organization",
            lambda q: q.select("id, name").order("name"),
            principal_id=principal_id,
            ttl=get_ttl_class_for_resource("organization"),
            force_refresh=force_refresh,
        )
        return [OrganizationPayload.from_row(row) for row in rows]

    async def get_user_role(self, user_id: str, organization_id: str) -> Optional[str]:
        """Membership role of a user in an organization, None if not a member."""
        rows = await self.cache.optimized_fetch(
            "user_organization",
            lambda q: q.select("role").eq("user_id", user_id).eq("organization_id", organization_id),
            principal_id=user_id,
            ttl=get_ttl_class_for_resource("user_organization"),
        )
        if not rows:
            return None
        return rows[0].get("role")

    async def is_admin(self, user_id: str, organization_id: str) -> bool:
        return await self.get_user_role(user_id, organization_id) in ("admin", "owner")

    async def list_assignments(
        self,
        organization_id: Optional[str] = None,
        principal_id: Optional[str] = None,
        force_refresh: bool = False,
    ) -> List[AssignmentPayload]:
        def build(q):
            q = q.select("*")
            if organization_id:
                q = q.eq("organization_id", organization_id)
            return q.order("created_at", ascending=False)

        rows = await self.cache.optimized_fetch(
            "interactive_assignment",
            build,
            principal_id=principal_id,
            ttl=get_ttl_class_for_resource("interactive_assignment"),
            force_refresh=force_refresh,
        )
        return [AssignmentPayload.from_row(row) for row in rows]

    async def get_assignment(
        self,
        assignment_id: str,
        principal_id: Optional[str] = None,
    ) -> AssignmentPayload:
        row = await self.cache.optimized_fetch_by_id(
            "interactive_assignment", assignment_id, principal_id=principal_id
        )
        return AssignmentPayload.from_row(row)

    async def list_questions(
        self,
        assignment_id: str,
        principal_id: Optional[str] = None,
    ) -> List[QuestionPayload]:
        rows = await self.cache.optimized_fetch(
            "interactive_question",
            lambda q: q.select("*").eq("assignment_id", assignment_id).order("order"),
            principal_id=principal_id,
            ttl=get_ttl_class_for_resource("interactive_question"),
        )
        return [QuestionPayload.from_row(row) for row in rows]

    async def recent_activity(
        self,
        principal_id: Optional[str] = None,
        since: Optional[str] = None,
        limit: int = 100,
    ) -> List[ActivityPayload]:
        """
        Latest submissions, newest first, with anonymous user names filled in.

        User details come from one batched read over the distinct user IDs.
        """
        def build(q):
            q = q.select(SUBMISSION_COLUMNS).not_is("user_id", None)
            if since:
                q = q.gte("started_at", since)
            return q.order("started_at", ascending=False).limit(limit)

        submissions = await self.cache.optimized_fetch(
            "interactive_submission",
            build,
            principal_id=principal_id,
            ttl=TTLClass.ACTIVITY,
        )

        user_ids = sorted({row["user_id"] for row in submissions if row.get("user_id")})
        users = await self.cache.batch_fetch_by_ids(
            "anonymous_user", user_ids, principal_id=principal_id
        )
        anonymous_users = {user["id"]: user for user in users}
        return [ActivityPayload.from_row(row, anonymous_users) for row in submissions]

    async def dashboard_summary(
        self,
        user_id: str,
        organization_id: str,
    ) -> DashboardSummary:
        organizations = await self.list_organizations(principal_id=user_id)
        assignments = await self.list_assignments(organization_id, principal_id=user_id)
        role = await self.get_user_role(user_id, organization_id)
        return DashboardSummary(organizations=organizations, assignments=assignments, role=role)

    async def preload_dashboard(
        self,
        user_id: Optional[str],
        organization_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Warm the reads a dashboard makes on first render."""
        configs = [
            PreloadConfig(
                resource="organization",
                query_builder=lambda q: q.select("id, name").order("name"),
                principal_id=user_id,
            ),
        ]
        if organization_id:
            configs.append(PreloadConfig(
                resource="interactive_assignment",
                query_builder=lambda q: (
                    q.select("*").eq("organization_id", organization_id).order("created_at", ascending=False)
                ),
                principal_id=user_id,
            ))
            if user_id:
                configs.append(PreloadConfig(
                    resource="user_organization",
                    query_builder=lambda q: (
                        q.select("role").eq("user_id", user_id).eq("organization_id", organization_id)
                    ),
                    principal_id=user_id,
                ))
        return await self.cache.preload_data(configs)

    def invalidate_assignments(self) -> int:
        """Drop cached assignment and question reads after an edit."""
        removed = self.cache.clear_cache("interactive_assignment")
        removed += self.cache.clear_cache("interactive_question")
        logger.info(f"Invalidated {removed} assignment entries")
        return removed
