from tests.factories import EnrollmentFactory, SchoolFactory, StudentFactory
from services.audit_service import log_enrollment_change


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_list_schools_ordered_by_name(staff_client):
    SchoolFactory(inep=35000010, name="EMEF Zélia")
    SchoolFactory(inep=35000020, name="EMEF Antônio")

    response = staff_client.get("/api/v1/schools")

    assert response.status_code == 200
    assert [s["name"] for s in response.get_json()] == ["EMEF Antônio", "EMEF Zélia"]


def test_get_school(staff_client):
    SchoolFactory(inep=35000010, name="EMEF Zélia")

    assert staff_client.get("/api/v1/schools/35000010").get_json() == {
        "inep": 35000010, "name": "EMEF Zélia"}
    response = staff_client.get("/api/v1/schools/1")
    assert response.status_code == 404
    assert response.get_json() == {"error": "school not found"}


def test_reads_require_login(client):
    student = StudentFactory(cpf="52998224725", nis="12345678901")
    SchoolFactory(inep=35000010)

    for url in ("/api/v1/schools", "/api/v1/schools/35000010",
                f"/api/v1/students/{student.id}"):
        response = client.get(url)
        assert response.status_code == 401, url
        assert response.get_json() == {"error": "authentication required"}


def test_get_student_with_enrollments(staff_client):
    student = StudentFactory(full_name="Maria da Silva")
    EnrollmentFactory(student=student, school_year=2024)
    EnrollmentFactory(student=student, school_year=2025)

    data = staff_client.get(f"/api/v1/students/{student.id}").get_json()

    assert data["full_name"] == "Maria da Silva"
    assert [e["school_year"] for e in data["enrollments"]] == [2025, 2024]
    assert staff_client.get("/api/v1/students/999").status_code == 404


def test_student_audit_requires_manager(client, staff_client):
    assert client.get("/api/v1/audit/student/1").status_code == 401
    assert staff_client.get("/api/v1/audit/student/1").status_code == 403


def test_student_audit(manager_client, session):
    enrollment = EnrollmentFactory()
    for n in range(3):
        log_enrollment_change(session, enrollment.id, {"n": n}, {"n": n + 1}, changed_by=7)
    session.commit()

    response = manager_client.get(f"/api/v1/audit/student/{enrollment.student_id}?limit=2")

    data = response.get_json()
    assert response.status_code == 200
    assert data["student_id"] == enrollment.student_id
    assert len(data["logs"]) == 2
    assert data["logs"][0]["new_values"] == {"n": 3}


def test_student_audit_rejects_bad_limit(manager_client):
    response = manager_client.get("/api/v1/audit/student/1?limit=abc")
    assert response.status_code == 400
