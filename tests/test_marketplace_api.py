"""
End-to-end tests through the HTTP layer: a company launches a campaign and
posts an internship, a student subscribes and applies, the company reviews.
"""
from datetime import datetime, timedelta

from app.services import campaign_service

LETTER = "Hello! I have built three Django projects and would love to intern with your backend team."


def signup_company(client):
    response = client.post("/company/signup", json={
        "name": "Dana Reyes",
        "email": "dana@initech.io",
        "password": "secret1",
        "companyName": "Initech",
        "companyWebsite": "https://initech.io",
    })
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


def signup_student(client, email="asha@example.com"):
    response = client.post("/student/signup", json={
        "name": "Asha Patel", "email": email, "password": "secret1",
    })
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


def launch_campaign(client, headers, **overrides):
    body = {
        "title": "Backend Summer",
        "budget": 2000,
        "endDate": (datetime.utcnow() + timedelta(days=60)).isoformat(),
        "maxInternships": 2,
        "paymentMethod": "card",
        "transactionId": "txn_abc",
    }
    body.update(overrides)
    response = client.post("/company/campaigns", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["campaign"]


def post_internship(client, headers, campaign_id, title="Backend Intern"):
    response = client.post(f"/company/campaigns/{campaign_id}/internships", headers=headers, json={
        "title": title,
        "description": "Work on our REST APIs",
        "location": "Remote",
        "type": "REMOTE",
        "stipend": 12000,
        "duration": "3 months",
        "deadline": (datetime.utcnow() + timedelta(days=14)).isoformat(),
        "skills": ["Python", "Django"],
        "tags": ["backend"],
    })
    assert response.status_code == 201, response.text
    return response.json()["internship"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_campaign_endpoints(client):
    headers = signup_company(client)
    campaign = launch_campaign(client, headers)

    assert campaign["status"] == "ACTIVE"
    assert campaign["payment"]["status"] == "COMPLETED"

    listing = client.get("/company/campaigns", headers=headers).json()
    assert [c["id"] for c in listing["campaigns"]] == [campaign["id"]]

    response = client.put(f"/company/campaigns/{campaign['id']}", headers=headers, json={"status": "PAUSED"})
    assert response.status_code == 200
    assert response.json()["campaign"]["status"] == "PAUSED"

    response = client.put(f"/company/campaigns/{campaign['id']}", headers=headers, json={"status": "EXPIRED"})
    assert response.status_code == 400

    assert client.get("/company/campaigns/999", headers=headers).status_code == 404


def test_unpaid_launch_is_pending(client):
    headers = signup_company(client)
    campaign = launch_campaign(client, headers, transactionId=None)
    assert campaign["payment"]["status"] == "PENDING"
    assert campaign["payment"]["paidAt"] is None


def test_launch_missing_fields(client):
    headers = signup_company(client)
    response = client.post("/company/campaigns", json={"title": "No budget"}, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Missing required fields"}


def test_request_body_errors_use_envelope(client):
    """Test schema validation failures come back as a 400 envelope."""
    headers = signup_company(client)
    campaign = launch_campaign(client, headers)

    response = client.post(
        f"/company/campaigns/{campaign['id']}/internships", headers=headers, json={"title": "Only a title"}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["message"]


def test_unexpected_errors_are_generic(client, monkeypatch):
    headers = signup_company(client)

    def boom(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(campaign_service, "list_campaigns", boom)
    response = client.get("/company/campaigns", headers=headers)

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error"}


def test_full_application_flow(client, make_plan):
    """Test the happy path and the ACCEPTED lock across both surfaces."""
    company_headers = signup_company(client)
    campaign = launch_campaign(client, company_headers)
    internship = post_internship(client, company_headers, campaign["id"])

    plan = make_plan(name="Pro", cap=10)
    student_headers = signup_student(client)

    # Token issued at signup has no subscription flag
    response = client.get("/student/internships", headers=student_headers)
    assert response.status_code == 403

    response = client.post("/student/subscriptions", headers=student_headers, json={
        "planId": plan.id, "paymentMethod": "card", "transactionId": "txn_s1",
    })
    assert response.status_code == 201, response.text
    assert response.json()["hasActiveSubscription"] is True
    student_headers = {"Authorization": f"Bearer {response.json()['token']}"}

    response = client.get("/student/internships", headers=student_headers)
    assert response.status_code == 200
    assert [i["id"] for i in response.json()["internships"]] == [internship["id"]]

    response = client.post(
        f"/student/internships/{internship['id']}/apply", headers=student_headers, json={"coverLetter": LETTER}
    )
    assert response.status_code == 201, response.text
    application_id = response.json()["application"]["id"]

    response = client.post(
        f"/student/internships/{internship['id']}/apply", headers=student_headers, json={"coverLetter": LETTER}
    )
    assert response.status_code == 409

    usage = client.get("/student/usage", headers=student_headers).json()
    assert usage["used"] == 1
    assert usage["remaining"] == 9

    listing = client.get(f"/company/campaigns/{campaign['id']}/applications", headers=company_headers).json()
    assert listing["summary"]["pending"] == 1

    response = client.post(
        f"/company/applications/{application_id}", headers=company_headers, json={"status": "ACCEPTED"}
    )
    assert response.status_code == 200
    assert response.json()["application"]["status"] == "ACCEPTED"

    response = client.post(
        f"/company/applications/{application_id}", headers=company_headers, json={"status": "REJECTED"}
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Cannot change status of accepted application"}

    response = client.put(
        f"/student/applications/{application_id}", headers=student_headers, json={"coverLetter": LETTER}
    )
    assert response.status_code == 403

    detail = client.get(f"/student/applications/{application_id}", headers=student_headers).json()
    assert detail["application"]["status"] == "ACCEPTED"
    assert detail["application"]["canEdit"] is False


def test_paused_campaign_hides_internships(client, make_plan):
    company_headers = signup_company(client)
    campaign = launch_campaign(client, company_headers)
    internship = post_internship(client, company_headers, campaign["id"])

    plan = make_plan()
    student_headers = signup_student(client)
    response = client.post("/student/subscriptions", headers=student_headers, json={
        "planId": plan.id, "paymentMethod": "card", "transactionId": "txn_p",
    })
    student_headers = {"Authorization": f"Bearer {response.json()['token']}"}

    client.put(f"/company/campaigns/{campaign['id']}", headers=company_headers, json={"status": "PAUSED"})

    assert client.get("/student/internships", headers=student_headers).json()["internships"] == []
    response = client.get(f"/student/internships/{internship['id']}", headers=student_headers)
    assert response.status_code == 400

    response = client.post(
        f"/student/internships/{internship['id']}/apply", headers=student_headers, json={"coverLetter": LETTER}
    )
    assert response.status_code == 400
    assert response.json()["message"] == "This internship campaign is no longer active"


def test_quota_exceeded_payload(client, make_plan):
    company_headers = signup_company(client)
    campaign = launch_campaign(client, company_headers)
    first = post_internship(client, company_headers, campaign["id"], title="First")
    second = post_internship(client, company_headers, campaign["id"], title="Second")

    plan = make_plan(name="Starter", cap=1)
    student_headers = signup_student(client)
    response = client.post("/student/subscriptions", headers=student_headers, json={
        "planId": plan.id, "paymentMethod": "card", "transactionId": "txn_q",
    })
    student_headers = {"Authorization": f"Bearer {response.json()['token']}"}

    client.post(f"/student/internships/{first['id']}/apply", headers=student_headers, json={"coverLetter": LETTER})
    response = client.post(
        f"/student/internships/{second['id']}/apply", headers=student_headers, json={"coverLetter": LETTER}
    )

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["limitReached"] is True
    assert body["currentPlan"] == "Starter"
    assert body["applicationsUsed"] == 1
    assert body["applicationLimit"] == 1


def test_campaign_internship_limit(client):
    headers = signup_company(client)
    campaign = launch_campaign(client, headers, maxInternships=1)
    post_internship(client, headers, campaign["id"], title="Only")

    response = client.post(f"/company/campaigns/{campaign['id']}/internships", headers=headers, json={
        "title": "Extra",
        "description": "One too many",
        "location": "Remote",
        "type": "REMOTE",
        "duration": "1 month",
        "deadline": (datetime.utcnow() + timedelta(days=5)).isoformat(),
    })
    assert response.status_code == 409
