"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from meal_planner.api.models import (
    BodyLogRequest,
    Credentials,
    DraftItemSelection,
    FoodSubstitution,
    NavigationRequest,
    Registration,
    SavePlanRequest,
    ShoppingItemSubstitution,
    ShoppingListRequest,
    ShoppingSelection,
    StockToggle,
    WaterRequest,
    state_payload,
)
from meal_planner.app_logging import configure_logging
from meal_planner.containers import AppContainer
from meal_planner.domain import flow
from meal_planner.domain.errors import AuthenticationError, ErrorKind, PlannerError
from meal_planner.domain.profile import UserProfile, default_profile
from meal_planner.domain.shopping import export_text
from meal_planner.domain.state import PlannerState
from meal_planner.services.planner import PlannerService
from meal_planner.services.sessions import SessionRegistry

SESSION_HEADER = "X-Session-Token"
SIGN_IN_REQUIRED_MESSAGE = "Sign in to continue."

ERROR_STATUS_CODES = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.CONFIGURATION: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.TRANSIENT_UPSTREAM: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.PERMANENT_UPSTREAM: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.PERSISTENCE: status.HTTP_502_BAD_GATEWAY,
}


def _sessions(request: Request) -> SessionRegistry:
    container: AppContainer = request.app.state.container
    return container.sessions


def _planner(request: Request) -> PlannerService:
    planner = _sessions(request).get(request.headers.get(SESSION_HEADER))
    if planner is None:
        raise AuthenticationError(SIGN_IN_REQUIRED_MESSAGE)
    return planner


async def _open_session(
    request: Request,
    response: Response,
    sign_in: Callable[[PlannerService], Awaitable[PlannerState]],
) -> PlannerState:
    sessions = _sessions(request)
    planner = sessions.create()
    await planner.start()
    state = await sign_in(planner)
    sessions.discard(request.headers.get(SESSION_HEADER))
    response.headers[SESSION_HEADER] = sessions.add(planner)
    return state


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(PlannerError)
    async def planner_error_handler(
        request: Request, exc: PlannerError
    ) -> JSONResponse:
        logger.info(
            "%s %s rejected (%s): %s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
        )
        return JSONResponse(
            status_code=ERROR_STATUS_CODES[exc.kind],
            content={"error": {"kind": exc.kind, "message": exc.message}},
        )

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Simple health check endpoint."""
        return {
            "status": "ok",
            "missing": container.settings.missing_collaborators(),
        }

    @app.get("/state")
    async def get_state(request: Request) -> dict[str, object]:
        """Return the planner state of the calling session."""
        planner = _sessions(request).get(request.headers.get(SESSION_HEADER))
        if planner is None:
            return state_payload(flow.signed_out(PlannerState()))
        return state_payload(planner.state)

    @app.post("/auth/login")
    async def login(
        body: Credentials, request: Request, response: Response
    ) -> dict[str, object]:
        """Sign in with email and password and open a session."""
        state = await _open_session(
            request,
            response,
            lambda planner: planner.login(body.email, body.password),
        )
        return state_payload(state)

    @app.post("/auth/register")
    async def register(
        body: Registration, request: Request, response: Response
    ) -> dict[str, object]:
        """Create an account, sign in and open a session."""
        state = await _open_session(
            request,
            response,
            lambda planner: planner.register(
                body.email, body.password, body.confirm_password
            ),
        )
        return state_payload(state)

    @app.post("/auth/logout")
    async def logout(request: Request) -> dict[str, object]:
        """End the session and forget its token."""
        state = await _planner(request).logout()
        _sessions(request).discard(request.headers.get(SESSION_HEADER))
        return state_payload(state)

    @app.get("/onboarding/defaults")
    async def onboarding_defaults() -> dict[str, object]:
        """Return the profile the onboarding form starts from."""
        return default_profile().model_dump(mode="json")

    @app.post("/onboarding/profile")
    async def complete_profile(
        profile: UserProfile, request: Request
    ) -> dict[str, object]:
        """Submit the profile and draft a shopping list."""
        return state_payload(await _planner(request).complete_profile(profile))

    @app.post("/review/substitute")
    async def substitute_draft_item(
        body: DraftItemSelection, request: Request
    ) -> dict[str, object]:
        """Replace one item of the reviewed list."""
        state = await _planner(request).substitute_draft_item(body.name, body.category)
        return state_payload(state)

    @app.post("/review/confirm")
    async def confirm_shopping_list(
        body: ShoppingSelection, request: Request
    ) -> dict[str, object]:
        """Generate the weekly plan from the kept items."""
        state = await _planner(request).confirm_shopping_list(body.selected)
        return state_payload(state)

    @app.post("/plan/substitute")
    async def substitute_food(
        body: FoodSubstitution, request: Request
    ) -> dict[str, object]:
        """Replace one food of the plan."""
        state = await _planner(request).substitute_food(
            body.day_index, body.meal_index, body.food_id
        )
        return state_payload(state)

    @app.post("/shopping-list")
    async def generate_shopping_list(
        body: ShoppingListRequest, request: Request
    ) -> dict[str, object]:
        """Build a consolidated shopping list for the plan."""
        state = await _planner(request).generate_shopping_list(
            body.duration, body.budget
        )
        return state_payload(state)

    @app.post("/shopping-list/substitute")
    async def substitute_shopping_item(
        body: ShoppingItemSubstitution, request: Request
    ) -> dict[str, object]:
        """Replace one item of the live shopping list."""
        state = await _planner(request).substitute_shopping_item(
            body.name, body.category, body.budget
        )
        return state_payload(state)

    @app.post("/shopping-list/stock")
    async def toggle_in_stock(body: StockToggle, request: Request) -> dict[str, object]:
        """Mark or unmark an item as in stock."""
        return state_payload(_planner(request).toggle_in_stock(body.name))

    @app.get("/shopping-list/export", response_class=PlainTextResponse)
    async def export_shopping_list(request: Request) -> PlainTextResponse:
        """Return the live shopping list as plain text."""
        state = _planner(request).state
        if state.shopping_list is None:
            return PlainTextResponse("", status_code=status.HTTP_404_NOT_FOUND)
        return PlainTextResponse(export_text(state.shopping_list, state.in_stock))

    @app.post("/saved-plans")
    async def save_plan(body: SavePlanRequest, request: Request) -> dict[str, object]:
        """Save the live plan under a name."""
        return state_payload(_planner(request).save_plan(body.name))

    @app.post("/saved-plans/{plan_id}/load")
    async def load_saved_plan(plan_id: UUID, request: Request) -> dict[str, object]:
        """Make a saved plan the current one."""
        return state_payload(_planner(request).load_saved_plan(plan_id))

    @app.delete("/saved-plans/{plan_id}")
    async def delete_saved_plan(
        plan_id: UUID, request: Request, confirmed: bool = False
    ) -> dict[str, object]:
        """Delete a saved plan once confirmed."""
        return state_payload(_planner(request).delete_saved_plan(plan_id, confirmed))

    @app.post("/reset")
    async def reset(request: Request) -> dict[str, object]:
        """Start over from onboarding."""
        return state_payload(_planner(request).reset())

    @app.post("/error/acknowledge")
    async def acknowledge_error(request: Request) -> dict[str, object]:
        """Dismiss the error screen."""
        return state_payload(_planner(request).acknowledge_error())

    @app.post("/navigate")
    async def navigate(body: NavigationRequest, request: Request) -> dict[str, object]:
        """Switch to another view."""
        return state_payload(_planner(request).navigate(body.view))

    @app.post("/back")
    async def back(request: Request) -> dict[str, object]:
        """Return from a secondary view."""
        return state_payload(_planner(request).back())

    @app.post("/progress/logs")
    async def add_body_log(body: BodyLogRequest, request: Request) -> dict[str, object]:
        """Record body measurements."""
        state = _planner(request).add_body_log(
            weight=body.weight,
            neck=body.neck,
            biceps=body.biceps,
            chest=body.chest,
            waist=body.waist,
            hips=body.hips,
        )
        return state_payload(state)

    @app.post("/water/add")
    async def add_water(body: WaterRequest, request: Request) -> dict[str, object]:
        """Log one cup of water."""
        return state_payload(_planner(request).add_water(body.cup_ml))

    @app.post("/water/remove")
    async def remove_water(body: WaterRequest, request: Request) -> dict[str, object]:
        """Undo one cup of water."""
        return state_payload(_planner(request).remove_water(body.cup_ml))

    return app
