import pytest

from fitin.deps import get_current_session, get_photo_store, get_profile_store
from fitin.main import app
from fitin.models import PlanType, Session


USER_ID = "00000000-0000-0000-0000-0000000000a1"

CALCULATOR_PAYLOAD = {
    "weight": "70",
    "height": "175",
    "age": "25",
    "gender": "male",
    "activityLevel": "moderate",
}


@pytest.fixture
def signed_in(profile_store, photo_store):
    app.dependency_overrides[get_current_session] = lambda: Session(user_id=USER_ID)
    app.dependency_overrides[get_profile_store] = lambda: profile_store
    app.dependency_overrides[get_photo_store] = lambda: photo_store
    return profile_store


async def _walk_to_photo(client):
    await client.post("/v1/onboarding/welcome")
    await client.post("/v1/onboarding/calculator", json=CALCULATOR_PAYLOAD)
    return await client.post("/v1/onboarding/goal", json={"goal": "cut"})


@pytest.mark.asyncio
async def test_onboarding_requires_session(client):
    response = await client.get("/v1/onboarding")
    assert response.status_code == 401
    body = response.json()
    assert body["error"]["code"] == "UNAUTHORIZED"
    assert body["error"]["details"]["redirectTo"] == "/auth"


@pytest.mark.asyncio
async def test_free_plan_is_redirected(client, make_profile_store):
    app.dependency_overrides[get_current_session] = lambda: Session(user_id=USER_ID)
    app.dependency_overrides[get_profile_store] = lambda: make_profile_store(plan_type=PlanType.FREE)

    response = await client.get("/v1/onboarding")
    assert response.status_code == 403
    body = response.json()
    assert body["error"]["code"] == "PREMIUM_REQUIRED"
    assert body["error"]["details"]["redirectTo"] == "/nutrition-tracker"


@pytest.mark.asyncio
async def test_initial_state_is_welcome(client, signed_in):
    response = await client.get("/v1/onboarding")
    assert response.status_code == 200
    data = response.json()
    assert data["step"] == "welcome"
    assert data["maintenanceCalories"] is None
    assert data["hasPhoto"] is False


@pytest.mark.asyncio
async def test_calculator_returns_maintenance(client, signed_in):
    await client.post("/v1/onboarding/welcome")
    response = await client.post("/v1/onboarding/calculator", json=CALCULATOR_PAYLOAD)
    assert response.status_code == 200
    data = response.json()
    assert data["step"] == "goal"
    assert data["maintenanceCalories"] == 2594
    assert data["biometrics"] == {
        "height": 175.0,
        "weight": 70.0,
        "age": 25,
        "gender": "male",
        "activityLevel": "moderate",
    }

    options = await client.get("/v1/onboarding/goal/options")
    assert options.status_code == 200
    assert options.json()["options"] == {"cut": 2075, "maintain": 2594, "bulk": 2983}


@pytest.mark.asyncio
async def test_calculator_out_of_bounds(client, signed_in):
    await client.post("/v1/onboarding/welcome")
    response = await client.post("/v1/onboarding/calculator", json={**CALCULATOR_PAYLOAD, "height": 99})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "OUT_OF_BOUNDS"
    assert error["details"]["field"] == "height"

    state = await client.get("/v1/onboarding")
    assert state.json()["step"] == "calculator"


@pytest.mark.asyncio
async def test_calculator_parse_error(client, signed_in):
    await client.post("/v1/onboarding/welcome")
    response = await client.post("/v1/onboarding/calculator", json={**CALCULATOR_PAYLOAD, "weight": "seventy"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PARSE_ERROR"
    assert response.json()["error"]["details"] == {"field": "weight"}


@pytest.mark.asyncio
async def test_calculator_huge_integer_is_a_parse_error(client, signed_in):
    await client.post("/v1/onboarding/welcome")
    huge_height = int("1" + "0" * 399)
    response = await client.post("/v1/onboarding/calculator", json={**CALCULATOR_PAYLOAD, "height": huge_height})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PARSE_ERROR"
    assert response.json()["error"]["details"] == {"field": "height"}


@pytest.mark.asyncio
async def test_missing_goal_is_an_invalid_enum(client, signed_in):
    await client.post("/v1/onboarding/welcome")
    await client.post("/v1/onboarding/calculator", json=CALCULATOR_PAYLOAD)
    response = await client.post("/v1/onboarding/goal", json={})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_ENUM"
    assert error["details"]["field"] == "goal"

    state = await client.get("/v1/onboarding")
    assert state.json()["step"] == "goal"


@pytest.mark.asyncio
async def test_skipping_a_step_is_a_conflict(client, signed_in):
    response = await client.post("/v1/onboarding/goal", json={"goal": "cut"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_TRANSITION"
    assert response.json()["error"]["details"] == {"step": "welcome", "event": "select_goal"}


@pytest.mark.asyncio
async def test_goal_then_photo_required(client, signed_in):
    response = await _walk_to_photo(client)
    data = response.json()
    assert data["step"] == "photo"
    assert data["goal"] == "cut"
    assert data["targetCalories"] == 2075

    response = await client.post("/v1/onboarding/photo/submit")
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "MISSING_REQUIRED"
    assert error["details"] == {"step": "photo", "field": "photo"}


@pytest.mark.asyncio
async def test_full_flow_reaches_tracker(client, signed_in, photo_store):
    await _walk_to_photo(client)

    response = await client.post(
        "/v1/onboarding/photo",
        files={"photo": ("before.jpg", b"not really a jpeg", "image/jpeg")},
    )
    assert response.status_code == 200
    assert response.json()["hasPhoto"] is True
    assert photo_store.stored[0][1] == "before.jpg"

    response = await client.post("/v1/onboarding/photo/submit")
    assert response.json()["step"] == "community"
    assert signed_in.saved_profiles == []

    response = await client.post("/v1/onboarding/community")
    data = response.json()
    assert data["step"] == "tracker"
    assert data["notifications"] == [{"level": "success", "message": "Welcome to the FitIn community!"}]
    assert len(signed_in.saved_profiles) == 1

    dashboard = await client.get("/v1/tracker/dashboard")
    assert dashboard.status_code == 200
    body = dashboard.json()
    assert body["targetCalories"] == 2075
    assert body["consumedCalories"] == 1256
    assert body["remainingCalories"] == 819


@pytest.mark.asyncio
async def test_dashboard_before_tracker_is_a_conflict(client, signed_in):
    response = await client.get("/v1/tracker/dashboard")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_abandon_restarts_at_welcome(client, signed_in):
    await _walk_to_photo(client)
    response = await client.delete("/v1/onboarding")
    assert response.status_code == 204

    response = await client.get("/v1/onboarding")
    assert response.json()["step"] == "welcome"


@pytest.mark.asyncio
async def test_restart(client, signed_in):
    await _walk_to_photo(client)
    response = await client.post("/v1/onboarding/restart")
    assert response.status_code == 200
    assert response.json()["step"] == "welcome"


@pytest.mark.asyncio
async def test_premium_details_saved(client, signed_in):
    response = await client.post(
        "/v1/premium/details",
        json={"height": "180", "weight": "82.5", "age": "30", "goal": "muscle-gain"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["goal"] == "muscle-gain"
    assert data["weight"] == 82.5
    assert data["notifications"] == [{"level": "success", "message": "Details saved successfully!"}]
    assert signed_in.saved_details[0][0] == USER_ID


@pytest.mark.asyncio
async def test_premium_details_invalid_goal(client, signed_in):
    response = await client.post(
        "/v1/premium/details",
        json={"height": "180", "weight": "82.5", "age": "30", "goal": "become_god"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ENUM"


@pytest.mark.asyncio
async def test_premium_details_requires_session(client):
    response = await client.post("/v1/premium/details", json={"goal": "cut"})
    assert response.status_code == 401
