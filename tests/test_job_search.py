import pytest


def _post_job(client, headers, company_id, **fields):
    body = {
        "company_id": company_id,
        "title": fields.pop("title", "Software Engineer"),
        "description": fields.pop("description", "Work on our platform."),
        "status": fields.pop("status", "active"),
        **fields,
    }
    r = client.post("/jobs", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["job"]


@pytest.fixture()
def board(client, make_user):
    _, headers = make_user("hr@example.com", "recruiter", "Hannah HR")
    company = client.post("/companies", data={"name": "Globex"}, headers=headers).json()["company"]
    jobs = [
        _post_job(client, headers, company["id"], title="Data Analyst", type="full-time",
                  location="Berlin", skills=["SQL", "Excel"], salary_min=40000, salary_max=50000),
        _post_job(client, headers, company["id"], title="ML Intern", type="internship",
                  location="Remote", skills=["Python", "PyTorch"], salary_min=1500),
        _post_job(client, headers, company["id"], title="Platform Engineer", type="full-time",
                  location="Remote", skills=["Go", "Kubernetes"], salary_min=70000, salary_max=90000),
        _post_job(client, headers, company["id"], title="Draft Role", status="draft", description=None),
    ]
    _, student = make_user("browser@example.com", "student")
    return {"headers": headers, "company": company, "jobs": jobs, "student": student}


def _search(client, headers, **params):
    r = client.get("/jobs/search", params=params, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_search_returns_only_active_newest_first(client, board):
    data = _search(client, board["student"])
    titles = [j["title"] for j in data["jobs"]]
    assert titles == ["Platform Engineer", "ML Intern", "Data Analyst"]
    assert data["total_count"] == 3
    assert data["has_more"] is False


def test_search_pagination_with_cursor(client, board):
    first = _search(client, board["student"], page_size=2)
    assert [j["title"] for j in first["jobs"]] == ["Platform Engineer", "ML Intern"]
    assert first["has_more"] is True
    assert first["next_cursor"] == first["jobs"][-1]["id"]

    second = _search(client, board["student"], page_size=2, cursor=first["next_cursor"])
    assert [j["title"] for j in second["jobs"]] == ["Data Analyst"]
    assert second["has_more"] is False


def test_search_invalid_cursor(client, board):
    r = client.get("/jobs/search", params={"cursor": 424242}, headers=board["student"])
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Invalid pagination cursor"


def test_search_sql_filters(client, board):
    data = _search(client, board["student"], type="full-time", location="Remote")
    assert [j["title"] for j in data["jobs"]] == ["Platform Engineer"]

    r = client.get("/jobs/search", params={"type": "gig"}, headers=board["student"])
    assert r.status_code == 400, r.text


def test_search_text_and_skills_are_case_insensitive(client, board):
    assert [j["title"] for j in _search(client, board["student"], search="ANALYST")["jobs"]] == ["Data Analyst"]
    assert [j["title"] for j in _search(client, board["student"], search="globex")["jobs"]] == [
        "Platform Engineer", "ML Intern", "Data Analyst",
    ]

    data = _search(client, board["student"], skills="python, kubernetes")
    assert [j["title"] for j in data["jobs"]] == ["Platform Engineer", "ML Intern"]


def test_search_salary_floor(client, board):
    data = _search(client, board["student"], salary_min=40000)
    assert [j["title"] for j in data["jobs"]] == ["Platform Engineer", "Data Analyst"]


def test_client_filter_can_shorten_page_and_clear_has_more(client, board):
    # Only the newest 2 rows are fetched; the filter keeps one, so the page is
    # short and has_more is reported false even though a later row matches.
    data = _search(client, board["student"], page_size=2, salary_min=40000)
    assert [j["title"] for j in data["jobs"]] == ["Platform Engineer"]
    assert data["has_more"] is False


def test_recent_jobs(client, board):
    r = client.get("/jobs/recent", params={"limit": 2}, headers=board["student"])
    assert [j["title"] for j in r.json()["jobs"]] == ["Platform Engineer", "ML Intern"]


def test_student_cannot_see_draft(client, board):
    draft = board["jobs"][3]
    assert client.get(f"/jobs/{draft['id']}", headers=board["student"]).status_code == 404
    assert client.get(f"/jobs/{draft['id']}", headers=board["headers"]).status_code == 200


def test_activating_requires_description(client, board):
    draft = board["jobs"][3]
    r = client.patch(f"/jobs/{draft['id']}/status", json={"status": "active"}, headers=board["headers"])
    assert r.status_code == 400, r.text

    r = client.patch(f"/jobs/{draft['id']}", json={"description": "Now described."}, headers=board["headers"])
    assert r.status_code == 200, r.text
    r = client.patch(f"/jobs/{draft['id']}/status", json={"status": "active"}, headers=board["headers"])
    assert r.status_code == 200, r.text
    assert r.json()["job"]["status"] == "active"


def test_salary_range_is_checked(client, board):
    r = client.post(
        "/jobs",
        json={
            "company_id": board["company"]["id"],
            "title": "Backwards Pay",
            "salary_min": 5000,
            "salary_max": 1000,
        },
        headers=board["headers"],
    )
    assert r.status_code == 400, r.text


def test_new_job_defaults_to_draft(client, board):
    job = _post_job(client, board["headers"], board["company"]["id"], title="Quiet Role", status=None)
    assert job["status"] == "draft"
    assert job["company_name"] == "Globex"
    assert job["application_count"] == 0


def test_my_jobs_and_status_filter(client, board):
    r = client.get("/jobs/mine", headers=board["headers"])
    assert len(r.json()["jobs"]) == 4
    r = client.get("/jobs/mine", params={"status": "draft"}, headers=board["headers"])
    assert [j["title"] for j in r.json()["jobs"]] == ["Draft Role"]


def test_cannot_post_for_someone_elses_company(client, board, make_user):
    _, other = make_user("intruder@example.com", "recruiter")
    r = client.post(
        "/jobs",
        json={"company_id": board["company"]["id"], "title": "Sneaky", "description": "x"},
        headers=other,
    )
    assert r.status_code == 403, r.text


def test_company_jobs_hide_drafts_from_others(client, board):
    company_id = board["company"]["id"]
    others = client.get(f"/companies/{company_id}/jobs", headers=board["student"]).json()["jobs"]
    owner = client.get(f"/companies/{company_id}/jobs", headers=board["headers"]).json()["jobs"]
    assert len(others) == 3
    assert len(owner) == 4
