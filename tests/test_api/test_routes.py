"""End-to-end tests of the HTTP API with a scripted provider."""

from pathlib import Path

import pytest
from conftest import (
    FakeExtractor,
    FakeProvider,
    FakeResolver,
    descriptive_item,
    evaluation_json,
    fib_item,
    mcq_item,
    questions_json,
)
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.dependencies import get_provider_source, get_text_extractor
from src.config.settings import Settings

QUIZ_PARAMS = {
    "class": "10",
    "curriculum": "CBSE",
    "subject": "Physics",
    "chapters": "Electricity, Magnetism",
}


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor(text="Notes about Ohm's law.")


@pytest.fixture
def client(settings: Settings, provider: FakeProvider, extractor: FakeExtractor):
    app = create_app(settings)
    app.dependency_overrides[get_provider_source] = lambda: FakeResolver(provider)
    app.dependency_overrides[get_text_extractor] = lambda: extractor
    with TestClient(app) as test_client:
        yield test_client


def register_and_login(client: TestClient, username: str = "alice") -> dict[str, str]:
    """Create an account and return its authorization header."""
    credentials = {"username": username, "password": "s3cret!"}
    assert client.post("/register", json=credentials).status_code == 201
    response = client.post("/login", json=credentials)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def auth(client: TestClient) -> dict[str, str]:
    return register_and_login(client)


class TestHealth:
    def test_root(self, client: TestClient):
        assert client.get("/").json() == {"status": "ok"}


class TestAccounts:
    """Test account endpoints."""

    def test_register_and_login(self, client: TestClient):
        credentials = {"username": "alice", "password": "s3cret!"}

        registered = client.post("/register", json=credentials)
        logged_in = client.post("/login", json=credentials)

        assert registered.json() == {"message": "User registered successfully!"}
        body = logged_in.json()
        assert body["message"] == "Login successful!"
        assert body["user"]["username"] == "alice"
        assert body["token"]

    def test_duplicate_registration(self, client: TestClient):
        credentials = {"username": "alice", "password": "s3cret!"}
        client.post("/register", json=credentials)

        response = client.post("/register", json=credentials)

        assert response.status_code == 409
        assert response.json() == {"error": "Username already exists."}

    def test_wrong_password(self, client: TestClient):
        client.post("/register", json={"username": "alice", "password": "s3cret!"})

        response = client.post("/login", json={"username": "alice", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials."}

    def test_unknown_user(self, client: TestClient):
        response = client.post("/login", json={"username": "ghost", "password": "nope"})
        assert response.status_code == 401

    def test_missing_fields(self, client: TestClient):
        response = client.post("/register", json={"username": "alice"})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing or invalid request parameters."

    def test_profile(self, client: TestClient, auth: dict[str, str]):
        response = client.get("/user/profile", headers=auth)

        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    def test_set_api_key(self, client: TestClient, auth: dict[str, str]):
        response = client.post(
            "/set-api-key", json={"apiKey": "sk-test", "apiType": "OpenAI"}, headers=auth
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "API key and type saved successfully.",
        }

    def test_set_api_key_rejects_unknown_type(self, client: TestClient, auth: dict[str, str]):
        response = client.post(
            "/set-api-key", json={"apiKey": "sk-test", "apiType": "Claude"}, headers=auth
        )
        assert response.status_code == 400


class TestAuthentication:
    """Test bearer token handling."""

    def test_missing_token(self, client: TestClient):
        response = client.get("/user/quizzes")

        assert response.status_code == 401
        assert response.json() == {"error": "Access token required."}

    def test_invalid_token(self, client: TestClient):
        response = client.get("/user/quizzes", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 403


class TestQuizEndpoints:
    """Test generation and retrieval."""

    def test_generate_and_take(self, client: TestClient, auth, provider: FakeProvider):
        """Test that a generated quiz is served without its answer key."""
        provider.responses.append(questions_json([mcq_item("q1"), mcq_item("q2")]))

        created = client.post(
            "/generate-quiz",
            json={**QUIZ_PARAMS, "quiz_type": "MCQ", "num_questions": 2},
            headers=auth,
        )

        assert created.status_code == 200
        body = created.json()
        assert body["success"] is True
        assert body["message"] == "Quiz generated successfully"

        quiz = client.get(f"/quiz/{body['quizId']}", headers=auth).json()
        assert quiz["class"] == "10"
        assert quiz["quiz_type"] == "MCQ"
        assert len(quiz["questions"]) == 2
        for question in quiz["questions"]:
            assert "answer" not in question
            assert "explanation" not in question
            assert len(question["options"]) == 4

    def test_count_out_of_range(self, client: TestClient, auth, provider: FakeProvider):
        response = client.post(
            "/generate-quiz",
            json={**QUIZ_PARAMS, "quiz_type": "FIB", "num_questions": 0},
            headers=auth,
        )

        assert response.status_code == 400
        assert "between 1 and 20" in response.json()["error"]
        assert provider.calls == 0

    def test_combined_not_a_single_type(self, client: TestClient, auth):
        response = client.post(
            "/generate-quiz",
            json={**QUIZ_PARAMS, "quiz_type": "Combined", "num_questions": 3},
            headers=auth,
        )
        assert response.status_code == 400

    def test_malformed_generation(self, client: TestClient, auth, provider: FakeProvider):
        provider.responses.append("I'd be happy to help!")

        response = client.post(
            "/generate-quiz",
            json={**QUIZ_PARAMS, "quiz_type": "FIB", "num_questions": 1},
            headers=auth,
        )

        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to process AI response")

    def test_descriptive_quiz(self, client: TestClient, auth, provider: FakeProvider):
        provider.responses.append(questions_json([descriptive_item()]))

        response = client.post(
            "/descriptive-quiz", json={**QUIZ_PARAMS, "num_questions": 1}, headers=auth
        )

        assert response.json()["message"] == "Descriptive quiz generated successfully"

    def test_combined_exam(self, client: TestClient, auth, provider: FakeProvider):
        def respond(prompt):
            return questions_json([mcq_item()] if "(MCQ)" in prompt else [fib_item()])

        provider.responses.extend([respond, respond])

        response = client.post(
            "/combined-exam",
            json={**QUIZ_PARAMS, "num_mcq": 1, "num_fib": 1, "num_descriptive": 0},
            headers=auth,
        )

        assert response.status_code == 200
        quiz = client.get(f"/quiz/{response.json()['quizId']}", headers=auth).json()
        assert quiz["quiz_type"] == "Combined"
        assert [q["type"] for q in quiz["questions"]] == ["MCQ", "FIB"]

    def test_other_user_gets_not_found(self, client: TestClient, auth, provider: FakeProvider):
        provider.responses.append(questions_json([fib_item()]))
        quiz_id = client.post(
            "/generate-quiz",
            json={**QUIZ_PARAMS, "quiz_type": "FIB", "num_questions": 1},
            headers=auth,
        ).json()["quizId"]
        other = register_and_login(client, "bob")

        response = client.get(f"/quiz/{quiz_id}", headers=other)

        assert response.status_code == 404
        assert client.get("/user/quizzes", headers=other).json() == []

    def test_quiz_history(self, client: TestClient, auth, provider: FakeProvider):
        provider.responses.append(questions_json([fib_item()]))
        client.post(
            "/generate-quiz",
            json={**QUIZ_PARAMS, "quiz_type": "FIB", "num_questions": 1},
            headers=auth,
        )

        history = client.get("/user/quizzes", headers=auth).json()

        assert len(history) == 1
        assert history[0]["subject"] == "Physics"
        assert "questions" not in history[0]


class TestSubmission:
    """Test grading over HTTP."""

    @pytest.fixture
    def quiz_id(self, client: TestClient, auth, provider: FakeProvider) -> str:
        def respond(prompt):
            if "(MCQ)" in prompt:
                return questions_json([mcq_item("m1"), mcq_item("m2", answer="B. Ohm")])
            return questions_json([descriptive_item("d1")])

        provider.responses.extend([respond, respond])
        response = client.post(
            "/combined-exam",
            json={**QUIZ_PARAMS, "num_mcq": 2, "num_fib": 0, "num_descriptive": 1},
            headers=auth,
        )
        return response.json()["quizId"]

    def test_form_submission(self, client: TestClient, auth, provider: FakeProvider, quiz_id):
        """Test grading a multipart form submission."""
        provider.responses.append(evaluation_json(score=7))

        response = client.post(
            f"/submit-quiz/{quiz_id}",
            data={"answer_m1": "C", "answer_m2": "D", "answer_d1": "V = IR"},
            headers=auth,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["score"] == 56.67
        assert body["totalScore"] == 17
        assert body["maxPossibleScore"] == 30
        assert body["message"] == "Evaluation complete"

        results = client.get("/user/results", headers=auth).json()
        assert results[0]["result_id"] == body["resultId"]
        assert results[0]["class"] == "10"

        detail = client.get(f"/user/results/{body['resultId']}", headers=auth).json()
        assert [r["score"] for r in detail["feedback"]] == [10, 0, 7]

    def test_json_submission(self, client: TestClient, auth, quiz_id):
        """Test that answers can be sent as a JSON object."""
        response = client.post(
            f"/submit-quiz/{quiz_id}", json={"answer_m1": "c", "answer_m2": "b"}, headers=auth
        )

        assert response.status_code == 200
        assert response.json()["totalScore"] == 20

    def test_invalid_json_body(self, client: TestClient, auth, quiz_id):
        response = client.post(
            f"/submit-quiz/{quiz_id}",
            content=b"{not json",
            headers={**auth, "content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Submission body must be a JSON object."}

    def test_json_body_must_be_object(self, client: TestClient, auth, quiz_id):
        response = client.post(f"/submit-quiz/{quiz_id}", json=["C", "B"], headers=auth)
        assert response.status_code == 400

    def test_upload_is_used_and_removed(
        self,
        client: TestClient,
        auth,
        provider: FakeProvider,
        extractor: FakeExtractor,
        settings: Settings,
        quiz_id,
    ):
        """Test that an uploaded PDF is extracted and then deleted."""
        provider.responses.append(evaluation_json(score=8))

        response = client.post(
            f"/submit-quiz/{quiz_id}",
            data={"answer_m1": "C"},
            files={"pdfFile": ("answer.pdf", b"%PDF-1.4 fake", "application/pdf")},
            headers=auth,
        )

        assert response.status_code == 200
        assert len(extractor.paths) == 1
        assert extractor.paths[0].suffix == ".pdf"
        assert not extractor.paths[0].exists()
        assert list(Path(settings.upload_dir).iterdir()) == []
        assert "Notes about Ohm's law." in provider.prompts[-1]

    def test_unknown_quiz(self, client: TestClient, auth):
        response = client.post("/submit-quiz/missing", data={"answer_x": "A"}, headers=auth)

        assert response.status_code == 404
        assert "Quiz not found" in response.json()["error"]

    def test_unknown_result(self, client: TestClient, auth):
        response = client.get("/user/results/missing", headers=auth)

        assert response.status_code == 404
        assert "Result not found" in response.json()["error"]
