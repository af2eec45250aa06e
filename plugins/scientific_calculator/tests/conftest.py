import pytest

from app import create_app


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "calculator" / "settings.yml"


@pytest.fixture
def app(settings_path):
    app = create_app("TestingConfig")
    app.config["PLUGIN_SETTINGS"]["scientific_calculator"] = {
        "angle_unit": "Degrees",
        "precision": 10,
        "max_expression_length": 64,
        "settings_path": str(settings_path),
    }
    return app


@pytest.fixture
def client(app):
    return app.test_client()
