import yaml

from plugins.scientific_calculator.api import _SESSIONS


def _evaluate(client, expression, **extra):
    return client.post(
        "/api/scientific_calculator/evaluate",
        json={"expression": expression, **extra},
    )


def test_evaluate_endpoint(client):
    resp = _evaluate(client, "3*4+5")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["success"] is True
    assert data["data"]["result"] == 17
    assert data["data"]["formatted"] == "17"
    assert data["data"]["angle_unit"] == "Degrees"
    assert data["data"]["precision"] == 10
    assert data["data"]["session_id"]


def test_session_keeps_last_answer(client):
    first = _evaluate(client, "2+2").get_json()["data"]
    session_id = first["session_id"]
    second = _evaluate(client, "ans*10", session_id=session_id).get_json()["data"]
    assert second["result"] == 40
    assert second["last_answer"] == 40

    other = _evaluate(client, "ans*10").get_json()["data"]
    assert other["session_id"] != session_id
    assert other["result"] == 0


def test_overrides_apply_to_session(client):
    data = _evaluate(client, "1/3", angle_unit="Rad", precision=2).get_json()["data"]
    assert data["result"] == 0.33
    assert data["last_answer"] == 1 / 3
    assert data["angle_unit"] == "Radians"
    follow_up = _evaluate(client, "sin(pi/2)", session_id=data["session_id"]).get_json()["data"]
    assert follow_up["result"] == 1


def test_non_finite_result_is_formatted(client):
    data = _evaluate(client, "10^400").get_json()["data"]
    assert data["result"] is None
    assert data["formatted"] == "∞"


def test_syntax_error_response(client):
    resp = _evaluate(client, "2+*3")
    assert resp.status_code == 400
    error = resp.get_json()["error"]
    assert error["code"] == "sci_calc.syntax_error"
    assert error["details"]["position"] == 2


def test_arithmetic_error_response(client):
    resp = _evaluate(client, "fact(171)")
    assert resp.status_code == 422
    payload = resp.get_json()
    assert payload["success"] is False
    assert payload["error"]["code"] == "sci_calc.arithmetic_error"
    assert payload["error"]["message"] == "Factorial overflow"


def test_invalid_request_returns_error(client):
    resp = _evaluate(client, "")
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False

    resp = client.post("/api/scientific_calculator/evaluate", json={"expr": "1"})
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "sci_calc.invalid_request"


def test_invalid_overrides_rejected(client):
    resp = _evaluate(client, "1", angle_unit="turns")
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "sci_calc.invalid_angle_unit"
    resp = _evaluate(client, "1", precision=-1)
    assert resp.status_code == 400


def test_expression_length_limit(client):
    resp = _evaluate(client, "1+" * 40 + "1")
    assert resp.status_code == 400
    assert resp.get_json()["error"]["message"] == "Expression is too long"


def test_settings_are_persisted(client, settings_path):
    resp = client.put(
        "/api/scientific_calculator/settings",
        json={"angle_unit": "Gradians", "precision": 4},
    )
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["stored"] == {"AngleMode": "Gradians", "Precision": "4"}
    assert yaml.safe_load(settings_path.read_text(encoding="utf-8")) == {
        "AngleMode": "Gradians",
        "Precision": "4",
    }

    # New sessions start from the stored settings.
    fresh = _evaluate(client, "sin(100)").get_json()["data"]
    assert fresh["angle_unit"] == "Gradians"
    assert fresh["precision"] == 4
    assert fresh["result"] == 1


def test_get_settings(client, settings_path):
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text("AngleMode: Rad\nPrecision: '3'\n", encoding="utf-8")
    resp = client.get("/api/scientific_calculator/settings")
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["angle_unit"] == "Radians"
    assert data["precision"] == 3


def test_memory_operations(client):
    session_id = _evaluate(client, "0").get_json()["data"]["session_id"]

    def memory(action, value=None):
        body = {"action": action, "session_id": session_id}
        if value is not None:
            body["value"] = value
        resp = client.post("/api/scientific_calculator/memory", json=body)
        assert resp.status_code == 200
        return resp.get_json()["data"]["memory"]

    assert memory("set", 5) == 5
    assert memory("add", 2.5) == 7.5
    assert memory("subtract", 1) == 6.5
    _evaluate(client, "100", session_id=session_id)
    assert memory("recall") == 6.5
    assert memory("clear") == 0
    resp = client.get(f"/api/scientific_calculator/memory?session_id={session_id}")
    assert resp.get_json()["data"]["memory"] == 0


def test_memory_requires_value(client):
    resp = client.post("/api/scientific_calculator/memory", json={"action": "add"})
    assert resp.status_code == 400


def test_command_endpoint(client):
    resp = client.post("/api/scientific_calculator/command", json={"verb": "add", "args": ["2", "3"]})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["success"] is True
    assert data["data"] == [5.0]

    resp = client.post("/api/scientific_calculator/command", json={"verb": "evaluate", "args": ["sin(90)"]})
    assert resp.get_json()["data"]["data"] == [1.0]


def test_command_failure(client):
    resp = client.post("/api/scientific_calculator/command", json={"verb": "divide", "args": ["1", "0"]})
    assert resp.status_code == 400
    error = resp.get_json()["error"]
    assert error["code"] == "sci_calc.command_failed"
    assert "Division by zero" in error["message"]


def test_functions_listing(client):
    resp = client.get("/api/scientific_calculator/functions")
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert {"sin", "sinh", "log10", "fact"} <= set(data["functions"])
    assert {"pi", "π", "e", "phi"} <= set(data["constants"])
    assert data["angle_units"] == ["Degrees", "Radians", "Gradians"]
    assert "evaluate" in data["commands"]


def test_failed_evaluation_keeps_session_settings(client):
    session_id = _evaluate(client, "1").get_json()["data"]["session_id"]

    resp = _evaluate(client, "2+", session_id=session_id, angle_unit="Rad", precision=0)
    assert resp.status_code == 400
    resp = _evaluate(client, "1/0", session_id=session_id, angle_unit="Grad", precision=1)
    assert resp.status_code == 422
    resp = _evaluate(client, "1", session_id=session_id, angle_unit="turns", precision=2)
    assert resp.status_code == 400

    data = _evaluate(client, "sin(90)", session_id=session_id).get_json()["data"]
    assert data["angle_unit"] == "Degrees"
    assert data["precision"] == 10
    assert data["result"] == 1


def test_corrupt_settings_file_falls_back_to_defaults(client, settings_path):
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text("AngleMode: [Rad\n", encoding="utf-8")

    resp = _evaluate(client, "1+1")
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["result"] == 2
    assert data["angle_unit"] == "Degrees"

    resp = client.put("/api/scientific_calculator/settings", json={"precision": 3})
    assert resp.status_code == 200
    assert yaml.safe_load(settings_path.read_text(encoding="utf-8")) == {"AngleMode": "Degrees", "Precision": "3"}


def test_reads_without_session_do_not_start_one(client):
    before = len(_SESSIONS)
    settings = client.get("/api/scientific_calculator/settings").get_json()["data"]
    assert settings["session_id"] is None
    assert settings["angle_unit"] == "Degrees"
    memory = client.get("/api/scientific_calculator/memory?session_id=unknown").get_json()["data"]
    assert memory == {"session_id": None, "memory": 0}
    assert len(_SESSIONS) == before
