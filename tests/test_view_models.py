"""
Tests for dashboard loaders reading through the shared cache.
"""
import asyncio

import pytest

from classroom.view_models import (
    ActivityPayload,
    AssignmentPayload,
    DashboardData,
    OrganizationPayload,
)


@pytest.fixture
def dashboard(cache, datastore, sample_rows):
    datastore.rows = sample_rows
    return DashboardData(cache)


@pytest.mark.asyncio
async def test_list_organizations(dashboard, datastore):
    orgs = await dashboard.list_organizations(principal_id="user-1")

    assert orgs == [
        OrganizationPayload(id="org-1", name="Sunrise Primary"),
        OrganizationPayload(id="org-2", name="Hillside Academy"),
    ]
    assert datastore.calls[0].steps == [("select", "id,name"), ("order", "name", True)]


@pytest.mark.asyncio
async def test_sibling_views_share_one_read(dashboard, datastore):
    """Two widgets asking for the same list at once cause one read."""
    datastore.gate = asyncio.Event()
    first = asyncio.create_task(dashboard.list_assignments("org-1", principal_id="user-1"))
    second = asyncio.create_task(dashboard.list_assignments("org-1", principal_id="user-1"))
    for _ in range(3):
        await asyncio.sleep(0)
    datastore.gate.set()

    a, b = await asyncio.gather(first, second)
    assert a == b
    assert len(datastore.calls) == 1
    assert isinstance(a[0], AssignmentPayload)
    assert a[0].title == "Fractions warm-up"


@pytest.mark.asyncio
async def test_get_assignment_and_questions(dashboard):
    assignment = await dashboard.get_assignment("asg-1")
    questions = await dashboard.list_questions("asg-1")

    assert assignment.id == "asg-1"
    assert assignment.difficulty_level == "beginner"
    assert [q.question_text for q in questions] == ["1/2 + 1/4 = ?"]


@pytest.mark.asyncio
async def test_user_role(dashboard, datastore):
    assert await dashboard.get_user_role("user-1", "org-1") == "admin"
    assert await dashboard.is_admin("user-1", "org-1") is True
    assert len(datastore.calls_for("user_organization")) == 1

    datastore.rows["user_organization"] = []
    assert await dashboard.get_user_role("user-2", "org-1") is None


@pytest.mark.asyncio
async def test_recent_activity_batches_user_lookup(dashboard, datastore):
    activity = await dashboard.recent_activity(principal_id="admin-1", since="2024-03-01")

    assert len(activity) == 2
    assert isinstance(activity[0], ActivityPayload)
    assert activity[0].user_name == "Maya"
    assert activity[0].is_anonymous is True
    assert activity[1].user_name == "Unknown user"
    assert activity[1].is_anonymous is False

    user_reads = datastore.calls_for("anonymous_user")
    assert len(user_reads) == 1
    assert user_reads[0].steps[-1] == ("in", "id", ["anon-1", "user-9"])


@pytest.mark.asyncio
async def test_recent_activity_with_no_submissions_skips_user_read(dashboard, datastore):
    datastore.rows["interactive_submission"] = []

    assert await dashboard.recent_activity() == []
    assert datastore.calls_for("anonymous_user") == []


@pytest.mark.asyncio
async def test_dashboard_summary(dashboard):
    summary = await dashboard.dashboard_summary("user-1", "org-1")

    assert len(summary.organizations) == 2
    assert len(summary.assignments) == 2
    assert summary.role == "admin"


@pytest.mark.asyncio
async def test_preload_then_render_uses_cache(dashboard, datastore):
    summary = await dashboard.preload_dashboard("user-1", "org-1")
    assert summary["planned"] == 3
    assert summary["loaded"] == 3

    await dashboard.dashboard_summary("user-1", "org-1")
    assert len(datastore.calls) == 3


@pytest.mark.asyncio
async def test_invalidate_assignments(dashboard, datastore):
    await dashboard.list_assignments("org-1")
    await dashboard.list_questions("asg-1")
    await dashboard.list_organizations()

    assert dashboard.invalidate_assignments() == 2

    await dashboard.list_organizations()
    assert len(datastore.calls_for("organization")) == 1
    await dashboard.list_assignments("org-1")
    assert len(datastore.calls_for("interactive_assignment")) == 2
