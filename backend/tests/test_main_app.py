from fastapi.testclient import TestClient

from onboarding import main


def test_app_wires_in_memory_service_without_database(monkeypatch) -> None:
    monkeypatch.setattr(main.settings, "database_url", "")
    monkeypatch.setattr(main.settings, "max_turns_before_escalation", 3)

    with TestClient(main.app) as client:
        health = client.get("/health")
        turn = client.post("/chat/onboarding", json={"userId": "boot", "userText": "hi"})
        service = main.app.state.onboarding_service

    assert health.json() == {"status": "ok"}
    assert turn.json()["nextState"] == "CONSENT"
    assert service.processor.max_turns_before_escalation == 3
    assert type(service.repository).__name__ == "InMemoryProfileRepository"
