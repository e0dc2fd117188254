import pytest
from pymongo.errors import ServerSelectionTimeoutError

from tests.conftest import run, signup

COURSE_ROW = 'class="course" data-course-id='
REGISTERED_ROW = 'class="registered-course" data-course-id='


@pytest.mark.parametrize(
    "method, path",
    [("get", "/courses"), ("get", "/my-courses"), ("post", "/courses/cloud-fund/register")],
)
def test_protected_routes_redirect_to_login(client, method, path):
    response = getattr(client, method)(path, follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/login"


def test_unknown_course_redirects_to_login_when_anonymous(client):
    response = client.post("/courses/nope/register", follow_redirects=False)
    assert response.headers["location"] == "/login"


def test_signup_register_and_browse(client):
    response = signup(client, name="A", email="a@x.com", srn="s1", password="secret1")
    assert response.url.path == "/courses"
    assert response.text.count(COURSE_ROW) == 5

    response = client.post("/courses/cloud-fund/register", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/my-courses"

    my_courses = client.get("/my-courses")
    assert my_courses.text.count(REGISTERED_ROW) == 1
    assert "Cloud Computing Fundamentals" in my_courses.text

    courses = client.get("/courses")
    assert courses.text.count(COURSE_ROW) == 4
    assert 'data-course-id="cloud-fund"' not in courses.text


def test_registering_twice_keeps_one_entry(client, store):
    signup(client)
    client.post("/courses/mongo-db/register")
    response = client.post("/courses/mongo-db/register")
    assert response.url.path == "/my-courses"
    assert response.text.count(REGISTERED_ROW) == 1

    student = run(store.find_by_email("a@x.com"))
    assert [c.course_id for c in student.registered_courses] == ["mongo-db"]


def test_register_unknown_course_is_400(client):
    signup(client)
    response = client.post("/courses/underwater-basket-weaving/register")
    assert response.status_code == 400
    assert response.text == "Invalid course"


def test_all_courses_registered(client):
    signup(client)
    for course_id in ("cloud-fund", "cloud-deploy", "cloud-sec", "devops-cloud", "mongo-db"):
        client.post(f"/courses/{course_id}/register")
    response = client.get("/courses")
    assert response.text.count(COURSE_ROW) == 0
    assert "You are registered for every course." in response.text
    assert "DevOps &amp; Cloud Automation" in client.get("/my-courses").text


def test_session_for_deleted_student_logs_out(client, store, sessions):
    signup(client)
    run(store.collection.delete_many({}))
    response = client.get("/courses", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/login"
    assert len(sessions) == 0

    signup(client, email="b@x.com", srn="s2")
    run(store.collection.delete_many({}))
    response = client.post("/courses/cloud-fund/register", follow_redirects=False)
    assert response.headers["location"] == "/login"


def test_students_page_lists_newest_first(client):
    signup(client, name="Older", email="old@x.com", srn="s1")
    signup(client, name="Newer", email="new@x.com", srn="s2")
    client.cookies.clear()
    response = client.get("/students")
    assert response.status_code == 200
    assert response.text.count('class="student"') == 2
    assert response.text.index("Newer") < response.text.index("Older")


def test_students_page_store_failure_is_500(client, store):
    async def broken():
        raise ServerSelectionTimeoutError("mongo is down")

    store.list_all = broken
    response = client.get("/students")
    assert response.status_code == 500
    assert response.text == "Server error"
    assert "mongo is down" not in response.text


def test_unmatched_route_is_404(client):
    for response in (client.get("/nowhere"), client.post("/students"), client.delete("/courses")):
        assert response.status_code == 404
        assert response.text == "404 - Not Found"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy", "service": "course-portal"}


def test_stylesheet_served(client):
    response = client.get("/static/style.css")
    assert response.status_code == 200
    assert "text/css" in response.headers["content-type"]


def test_register_store_failure_is_500(client, store):
    from pymongo.errors import PyMongoError

    signup(client)

    async def broken(student_id, course_id, course_name):
        raise PyMongoError("write failed on shard-2")

    store.add_course_registration = broken
    response = client.post("/courses/cloud-fund/register", follow_redirects=False)
    assert response.status_code == 500
    assert response.text == "Server error"
    assert "shard-2" not in response.text


def test_malformed_student_document_is_500(client, store):
    run(store.collection.insert_one({"name": "Broken", "email": "broken@x.com", "srn": "B1"}))
    response = client.get("/students")
    assert response.status_code == 500
    assert response.text == "Server error"
