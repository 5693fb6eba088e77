"""
Unit tests for the internship catalogue.
Tests posting rules, the visibility rule, browse filters and the detail view.
"""
import pytest
from datetime import datetime, timedelta

from app.core.errors import CampaignInactive, Conflict, NotFound, ValidationError
from app.db.models.enums import CampaignStatus, InternshipType
from app.db.models.internship import Skill
from app.schemas.internship import InternshipCreateRequest, InternshipFilters
from app.services.internship_service import (
    browse_internships,
    get_internship_detail,
    post_internship,
    visible_internships,
)


def posting(**overrides):
    fields = {
        "title": "Data Intern",
        "description": "Build dashboards with the analytics team",
        "location": "Pune",
        "type": InternshipType.HYBRID,
        "stipend": 15000,
        "duration": "6 months",
        "deadline": datetime.utcnow() + timedelta(days=20),
        "skills": ["Python", "SQL"],
        "tags": ["analytics"],
    }
    fields.update(overrides)
    return InternshipCreateRequest(**fields)


@pytest.fixture
def campaign(make_campaign, recruiter):
    return make_campaign(recruiter, max_internships=2)


# ---------------------------------------------------------------------------
# posting
# ---------------------------------------------------------------------------

def test_post_internship(db, recruiter, campaign):
    internship = post_internship(db, recruiter.id, campaign.id, posting())

    assert internship.campaign_id == campaign.id
    assert internship.company_id == recruiter.company_id
    assert internship.is_active
    assert sorted(s.name for s in internship.skills) == ["Python", "SQL"]
    assert [t.name for t in internship.tags] == ["analytics"]


def test_post_reuses_existing_skills(db, recruiter, campaign):
    """Test skills are matched by name case-insensitively instead of duplicated."""
    post_internship(db, recruiter.id, campaign.id, posting(skills=["Python"]))
    post_internship(db, recruiter.id, campaign.id, posting(title="Other", skills=["python", "Go"]))

    assert db.query(Skill).count() == 2


@pytest.mark.parametrize("status", [CampaignStatus.PAUSED, CampaignStatus.COMPLETED, CampaignStatus.EXPIRED])
def test_post_requires_active_campaign(db, recruiter, make_campaign, status):
    campaign = make_campaign(recruiter, status=status)
    with pytest.raises(CampaignInactive):
        post_internship(db, recruiter.id, campaign.id, posting())


def test_post_rejects_ended_campaign(db, recruiter, make_campaign):
    campaign = make_campaign(recruiter, end_date=datetime.utcnow() - timedelta(minutes=5))
    with pytest.raises(CampaignInactive):
        post_internship(db, recruiter.id, campaign.id, posting())


def test_post_respects_max_internships(db, recruiter, campaign):
    post_internship(db, recruiter.id, campaign.id, posting(title="One"))
    post_internship(db, recruiter.id, campaign.id, posting(title="Two"))
    with pytest.raises(Conflict):
        post_internship(db, recruiter.id, campaign.id, posting(title="Three"))


def test_post_rejects_past_deadline(db, recruiter, campaign):
    with pytest.raises(ValidationError):
        post_internship(db, recruiter.id, campaign.id, posting(deadline=datetime.utcnow() - timedelta(days=1)))


def test_post_to_other_companys_campaign(db, make_company, campaign):
    rival = make_company(name="Globex")
    with pytest.raises(NotFound):
        post_internship(db, rival.id, campaign.id, posting())


# ---------------------------------------------------------------------------
# visibility and browsing
# ---------------------------------------------------------------------------

def test_visibility_rule(db, recruiter, make_campaign, make_internship):
    """Test only active, unexpired internships under ACTIVE campaigns are visible."""
    active = make_campaign(recruiter)
    paused = make_campaign(recruiter, status=CampaignStatus.PAUSED)
    completed = make_campaign(recruiter, status=CampaignStatus.COMPLETED)

    shown = make_internship(active, title="Shown")
    make_internship(active, title="Inactive", is_active=False)
    make_internship(active, title="Late", deadline=datetime.utcnow() - timedelta(days=1))
    make_internship(paused, title="Paused")
    make_internship(completed, title="Completed")

    assert [i.id for i in visible_internships(db).all()] == [shown.id]


def test_pausing_campaign_hides_and_resuming_restores(db, recruiter, student, make_campaign, make_internship):
    campaign = make_campaign(recruiter)
    make_internship(campaign)

    campaign.status = CampaignStatus.PAUSED
    db.commit()
    assert browse_internships(db, student.id, InternshipFilters())["internships"] == []

    campaign.status = CampaignStatus.ACTIVE
    db.commit()
    assert len(browse_internships(db, student.id, InternshipFilters())["internships"]) == 1


def test_browse_filters(db, recruiter, student, make_campaign, make_internship):
    campaign = make_campaign(recruiter)
    make_internship(campaign, title="Remote Python", skills=["Python"], type=InternshipType.REMOTE,
                    location="Remote", stipend=5000)
    make_internship(campaign, title="Office Java", skills=["Java"], type=InternshipType.IN_OFFICE,
                    location="Mumbai", stipend=20000)
    make_internship(campaign, title="Hybrid Design", skills=["Figma"], type=InternshipType.HYBRID,
                    location="Navi Mumbai", stipend=12000)

    def titles(**filters):
        result = browse_internships(db, student.id, InternshipFilters(**filters))
        return sorted(i["title"] for i in result["internships"])

    assert titles(type=InternshipType.REMOTE) == ["Remote Python"]
    assert titles(location="mumbai") == ["Hybrid Design", "Office Java"]
    assert titles(min_stipend=10000, max_stipend=15000) == ["Hybrid Design"]
    assert titles(skills=["python", "FIGMA"]) == ["Hybrid Design", "Remote Python"]
    assert titles(search="acme") == ["Hybrid Design", "Office Java", "Remote Python"]
    assert titles(search="design") == ["Hybrid Design"]


def test_browse_sorting_and_pagination(db, recruiter, student, make_campaign, make_internship):
    campaign = make_campaign(recruiter)
    for stipend in (3000, 9000, 6000):
        make_internship(campaign, title=f"Stipend {stipend}", stipend=stipend)

    result = browse_internships(db, student.id, InternshipFilters(sort_by="stipend", sort_order="asc", limit=2))

    assert [i["stipend"] for i in result["internships"]] == [3000, 6000]
    assert result["pagination"]["totalInternships"] == 3
    assert result["pagination"]["totalPages"] == 2
    assert result["pagination"]["hasNext"] is True


def test_browse_marks_own_applications(db, recruiter, student, make_student, make_campaign, make_internship, make_application):
    campaign = make_campaign(recruiter)
    applied = make_internship(campaign, title="Applied")
    make_internship(campaign, title="Fresh")
    make_application(student, applied)
    make_application(make_student(email="other@example.com"), applied)

    result = browse_internships(db, student.id, InternshipFilters())
    by_title = {i["title"]: i for i in result["internships"]}

    assert by_title["Applied"]["hasApplied"] is True
    assert by_title["Applied"]["applicationCount"] == 2
    assert by_title["Applied"]["userApplication"]["status"] == "PENDING"
    assert by_title["Fresh"]["hasApplied"] is False
    assert by_title["Fresh"]["userApplication"] is None


def test_browse_filter_options(db, recruiter, student, make_campaign, make_internship):
    """Test filter options come only from visible internships."""
    active = make_campaign(recruiter)
    paused = make_campaign(recruiter, status=CampaignStatus.PAUSED)
    make_internship(active, skills=["Python"], location="Delhi")
    make_internship(paused, skills=["Rust"], location="Chennai")

    filters = browse_internships(db, student.id, InternshipFilters())["filters"]

    assert [s["name"] for s in filters["skills"]] == ["Python"]
    assert filters["locations"] == ["Delhi"]
    assert set(filters["types"]) == {"REMOTE", "IN_OFFICE", "HYBRID"}


# ---------------------------------------------------------------------------
# detail
# ---------------------------------------------------------------------------

def test_detail_includes_similar(db, recruiter, student, make_company, make_campaign, make_internship):
    campaign = make_campaign(recruiter)
    target = make_internship(campaign, title="Target", skills=["Python"])
    same_company = make_internship(campaign, title="Sibling")

    rival = make_company(name="Globex")
    rival_campaign = make_campaign(rival)
    shared_skill = make_internship(rival_campaign, title="Shared", skills=["Python"])
    make_internship(rival_campaign, title="Unrelated", skills=["Go"])
    make_internship(rival_campaign, title="Hidden", skills=["Python"], is_active=False)

    detail = get_internship_detail(db, student.id, target.id)

    similar_ids = {i["id"] for i in detail["similarInternships"]}
    assert similar_ids == {same_company.id, shared_skill.id}
    assert detail["canApply"] is True
    assert detail["hasApplied"] is False
    assert detail["campaign"]["status"] == "ACTIVE"


def test_detail_limits_similar_to_five(db, recruiter, student, make_campaign, make_internship):
    campaign = make_campaign(recruiter, max_internships=10)
    target = make_internship(campaign, title="Target")
    for i in range(7):
        make_internship(campaign, title=f"Other {i}")

    detail = get_internship_detail(db, student.id, target.id)
    assert len(detail["similarInternships"]) == 5


def test_detail_after_applying(db, recruiter, student, make_campaign, make_internship, make_application):
    internship = make_internship(make_campaign(recruiter))
    make_application(student, internship)

    detail = get_internship_detail(db, student.id, internship.id)

    assert detail["hasApplied"] is True
    assert detail["canApply"] is False
    assert detail["userApplication"]["coverLetter"]


@pytest.mark.parametrize("overrides", [
    {"is_active": False},
    {"deadline": datetime.utcnow() - timedelta(days=1)},
])
def test_detail_hidden_internship(db, recruiter, student, make_campaign, make_internship, overrides):
    internship = make_internship(make_campaign(recruiter), **overrides)
    with pytest.raises(NotFound):
        get_internship_detail(db, student.id, internship.id)


def test_detail_inactive_campaign(db, recruiter, student, make_campaign, make_internship):
    internship = make_internship(make_campaign(recruiter, status=CampaignStatus.PAUSED))
    with pytest.raises(CampaignInactive):
        get_internship_detail(db, student.id, internship.id)


def test_detail_missing(db, student):
    with pytest.raises(NotFound):
        get_internship_detail(db, student.id, 4242)
